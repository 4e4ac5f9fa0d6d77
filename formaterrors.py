"""Exceptions raised by the format compiler and interpreter."""

__all__ = ["FormatError", "FormatSyntaxError", "ParameterTypeError",
           "ArgumentUnderflow", "IterationNonProgress"]

class FormatError(Exception):
    """Base class for format errors.  The message is itself a format
    control string, which is rendered with the remaining arguments only
    when the error is printed."""

    def __init__(self, message, *args):
        self.message = message
        self.args = args

    def __str__(self):
        from format import format
        return format(None, self.message, *self.args)

class FormatSyntaxError(FormatError):
    """A malformed control string.  Carries the control string and the
    offset of the offending directive, and prints a caret under it."""

    indent = 2

    def __init__(self, control, offset, message, *args):
        super(FormatSyntaxError, self).__init__("~?~%~V@T\"~A\"~%~V@T^",
                                                message, args, self.indent,
                                                control,
                                                offset + self.indent + 1)
        self.control = control
        self.offset = offset

class ParameterTypeError(FormatSyntaxError):
    pass

class ArgumentUnderflow(FormatError, IndexError):
    def __init__(self, message="no more arguments", *args):
        super(ArgumentUnderflow, self).__init__(message, *args)

class IterationNonProgress(FormatError):
    def __init__(self, message="~~{...~~} construct not consuming any "
                               "arguments: infinite loop", *args):
        super(IterationNonProgress, self).__init__(message, *args)
