from printervars import PrinterVars

__all__ = ["CharposStream", "CaseConvertingStream"]

class CharposStream(object):
    """An output stream wrapper that keeps track of character positions
    relative to the beginning of the current line, and of the number of
    lines written so far.  It is the only object that writes to the
    underlying stream."""

    def __init__(self, stream, charpos=0, max_column=None, options=None):
        self.stream = stream
        self.charpos = charpos
        self.line = 0
        self.max_column = max_column
        self.options = options or getattr(stream, "options", None) \
                               or PrinterVars()
        self.closed = False

    def close(self):
        if not self.closed:
            self.stream.close()
            self.closed = True

    def flush(self):
        self.stream.flush()

    def write(self, s):
        newline = s.rfind("\n")
        if newline == -1:
            self.charpos += len(s)
        else:
            self.charpos = len(s) - (newline + 1)
            self.line += s.count("\n")
        self.stream.write(s)

    def terpri(self):
        self.write("\n")

    def fresh_line(self):
        if self.charpos > 0:
            self.terpri()
            return True
        else:
            return False

    def getvalue(self):
        return self.stream.getvalue()

class CaseConvertingStream(object):
    """A proxy that folds the case of everything written through it and
    passes every other operation on to the wrapped stream.

    The mode is one of "downcase", "upcase", "capitalize" (every word), or
    "capitalize-first" (the first word, with the rest downcased).  Words are
    maximal runs of alphanumeric characters; the proxy remembers where it is
    in a word across writes."""

    def __init__(self, stream, mode):
        self.stream = stream
        self.mode = mode
        self.in_word = False
        self.capitalized = False
        self.convert = {"downcase": lambda s: s.lower(),
                        "upcase": lambda s: s.upper(),
                        "capitalize": self.capitalize,
                        "capitalize-first": self.capitalize_first}[mode]

    def __getattr__(self, name):
        return getattr(self.stream, name)

    def write(self, s):
        self.stream.write(self.convert(s))

    def begin(self, prefix="", per_line_prefix=None, suffix="", level=None):
        if per_line_prefix is not None:
            per_line_prefix = self.convert(per_line_prefix)
        return self.stream.begin(self.convert(prefix), per_line_prefix,
                                 suffix, level=level)

    def end(self):
        # Folded at close, in output order.
        block = self.stream.block
        block.suffix = self.convert(block.suffix)
        self.stream.end()

    def logical_block(self, lst=None, options=None, prefix="",
                      per_line_prefix=None, suffix=""):
        block = self.stream.logical_block(lst, options, prefix,
                                          per_line_prefix, suffix)
        # Route the block's delimiters and markers through the fold.
        block.pp = self
        return block

    def capitalize(self, s):
        chars = []
        for c in s:
            if c.isalnum():
                chars.append(c.lower() if self.in_word else c.upper())
                self.in_word = True
            else:
                chars.append(c)
                self.in_word = False
        return "".join(chars)

    def capitalize_first(self, s):
        chars = []
        for c in s:
            if c.isalnum() and not self.capitalized:
                chars.append(c.upper())
                self.capitalized = True
            else:
                chars.append(c.lower())
        return "".join(chars)
