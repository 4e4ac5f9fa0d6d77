"""An implementation of Common Lisp's FORMAT.

A control string is compiled once into a tuple of strings and Directive
instances, which is cached and never changed afterwards.  Applying it
threads an Arguments cursor through the directives from left to right;
each directive returns the cursor for the next one, along with an exit
signal that ~^ uses to cut short the enclosing construct."""

import decimal
import re
import sys
import unicodedata
from functools import lru_cache
from io import StringIO
from math import isfinite
from numbers import Real

from arguments import Arguments
from charpos import CharposStream, CaseConvertingStream
from formaterrors import *
from numerals import *
from prettyprinter import PrettyPrinter, pformat, pprint_object, \
                          LINEAR, FILL, MISER, MANDATORY
from printervars import PrinterVars

__all__ = ["Formatter", "format", "compile_control_string",
           "apply_directives", "UP_AND_OUT", "UP_UP_AND_OUT"]

# Exit signals.
UP_AND_OUT = "up-and-out"
UP_UP_AND_OUT = "up-up-and-out"

class Modifiers:
    colon = frozenset([":"])
    atsign = frozenset(["@"])
    both = frozenset([":@"])
    all = colon | atsign | both

class Directive(object):
    """Base class for all format directives.  The control-string parser
    creates instances of (subclasses of) this class; each one is a compiled
    directive, and is not changed once parsing is complete.

    Subclasses declare their prefix parameters as a sequence of
    (name, default, type) triples, where the type is "int", "char", or
    None for no restriction."""

    variable_parameter = object()
    remaining_parameter = object()
    modifiers_allowed = None
    parameters = ()
    need_prettyprinter = False

    def __init__(self, params, offsets, colon, atsign, control, start, end,
                 parent=None):
        if (colon or atsign) and self.modifiers_allowed is None:
            raise FormatError("neither colon nor at-sign allowed "
                              "for this directive")
        elif (colon and atsign) and ":@" not in self.modifiers_allowed:
            raise FormatError("cannot specify both colon and at-sign")
        elif colon and ":" not in self.modifiers_allowed:
            raise FormatError("colon not allowed for this directive")
        elif atsign and "@" not in self.modifiers_allowed:
            raise FormatError("at-sign not allowed for this directive")
        if len(params) > len(self.parameters):
            raise FormatError("no~@[ more than ~D~] parameter~:P allowed "
                              "for this directive", len(self.parameters))
        for ((name, default, kind), value, offset) in \
                zip(self.parameters, params, offsets):
            if value is None or \
                    value is Directive.variable_parameter or \
                    value is Directive.remaining_parameter:
                continue
            if (kind == "int" and not isinstance(value, int)) or \
                    (kind == "char" and not isinstance(value, str)):
                raise ParameterTypeError(control, offset,
                                         "~A parameter must be "
                                         "~:[a character~;an integer~]",
                                         name, kind == "int")

        self.params = tuple(params); self.offsets = tuple(offsets)
        self.colon = colon; self.atsign = atsign
        self.control = control; self.start = start; self.end = end
        self.parent = parent

    def __str__(self): return self.control[self.start:self.end]

    def realize(self, args):
        """Return the values of all the parameters, with V and # replaced
        by the next argument and the number of remaining arguments, and the
        arguments left over."""
        values = []
        for (i, (name, default, kind)) in enumerate(self.parameters):
            p = self.params[i] if i < len(self.params) else None
            if p is Directive.variable_parameter:
                (p, args) = args.next()
            elif p is Directive.remaining_parameter:
                p = args.remaining
            values.append(default if p is None else p)
        return (values, args)

    def execute(self, stream, args):
        """Output to stream, returning the new arguments and an exit
        signal (or None)."""
        (params, args) = self.realize(args)
        return (self.format(stream, params, args), None)

    def format(self, stream, params, args):
        """Output zero or more arguments to stream, and return the
        arguments that remain."""
        return args

    def governor(self, cls):
        """If an instance of cls appears anywhere in the chain of parents from
        this instance to the root, return that instance, or None otherwise."""
        parent = self.parent
        while parent is not None:
            if isinstance(parent, cls):
                return parent
            parent = parent.parent
        return None

class Closing(Directive):
    """Base class for the directives that close a delimited directive."""

class DelimitedDirective(Directive):
    """Delimited directives, such as conditional expressions and
    justifications, are composed of an opening directive, zero or more
    clauses separated by ~;, and a closing directive.

    Subclasses name the class of their closing directive in closing_class;
    once parsed, instances have the closing directive actually encountered
    in their closing attribute."""

    closing_class = Closing
    separators_allowed = True

    def __init__(self, *args):
        super(DelimitedDirective, self).__init__(*args)
        self.clauses = [[]]
        self.separators = []
        self.closing = None

    def append(self, x):
        if isinstance(x, Separator):
            if not self.separators_allowed:
                raise FormatError("~~; not permitted here")
            self.separators.append(x)
            self.clauses.append([])
        elif isinstance(x, Closing):
            if not isinstance(x, self.closing_class):
                raise FormatError("mismatched closing directive")
            self.closing = x
            self.end = x.end
            self.delimited()
        else:
            self.clauses[-1].append(x)

    def delimited(self):
        """Called when the complete directive, including the closing
        directive, has been parsed."""
        self.clauses = tuple(tuple(c) for c in self.clauses)
        self.separators = tuple(self.separators)
        self.need_prettyprinter = type(self).need_prettyprinter or \
            any(x.need_prettyprinter
                for c in self.clauses
                for x in c
                if isinstance(x, Directive))

def compile_control(control):
    if isinstance(control, Formatter):
        return control.directives
    return compile_control_string(control)

def render_to_string(formatter, args, options):
    """Apply formatter to args, collecting its output in a string.
    Returns the string, the remaining arguments, and the exit signal."""
    stringstream = StringIO()
    (args, exit) = formatter.apply(stringstream, args, options)
    return (stringstream.getvalue(), args, exit)

# Basic Output

special_chars = {8: "Backspace", 9: "Tab", 10: "Newline", 13: "Return",
                 32: "Space", 127: "Rubout"}

python_escapes = {
    "\\": "\\", "\'": "\'", "\a": "a", "\b": "b", "\f": "f", "\n": "n",
    "\r": "r", "\t": "t", "\v": "v"
}

def character_name(char):
    code = ord(char)
    if code < 160:
        base = code & 127
        meta = "Meta-" if code & 128 else ""
        if base in special_chars:
            return meta + special_chars[base]
        elif base < 32:
            return meta + "Control-" + chr(base + 64)
        else:
            return meta + chr(base)
    elif char.isprintable():
        return char
    return unicodedata.name(char, "U+%04X" % code)

def readable_character(char):
    if char in python_escapes:
        return "'\\%s'" % python_escapes[char]
    elif char.isprintable():
        return repr(char)
    try:
        return "'\\N{%s}'" % unicodedata.name(char)
    except ValueError:
        return repr(char)

class Character(Directive):
    modifiers_allowed = Modifiers.all

    def format(self, stream, params, args):
        (char, args) = args.next()
        if isinstance(char, int):
            char = chr(char)
        if not isinstance(char, str) or len(char) != 1:
            raise TypeError("expected single character")
        stream.write(readable_character(char) if self.atsign
                     else character_name(char) if self.colon
                     else char)
        return args

class ConstantChar(Directive):
    """Directives that produce strings consisting of some number of copies of
    a constant character are compiled straight into those strings, unless
    the parameter is V or #."""

    parameters = (("count", 1, "int"),)

    def __new__(cls, params, offsets, colon, atsign, *args):
        if colon or atsign:
            raise FormatError("neither colon nor at-sign allowed "
                              "for this directive")
        if not params:
            return cls.character
        elif len(params) == 1 and isinstance(params[0], int):
            return cls.character * params[0]
        else:
            return super(ConstantChar, cls).__new__(cls)

    def format(self, stream, params, args):
        (count,) = params
        stream.write(self.character * count)
        return args

class Newline(ConstantChar):
    character = "\n"

class Page(ConstantChar):
    character = "\f"

class Tilde(ConstantChar):
    character = "~"

class Continuation(Directive):
    """Tilde-newline.  The parser skips the whitespace that follows the
    newline unless the colon modifier is given; with an at-sign, the
    newline itself is kept."""

    def __new__(cls, params, offsets, colon, atsign, *args):
        if params:
            raise FormatError("no parameters allowed for this directive")
        if colon and atsign:
            raise FormatError("cannot specify both colon and at-sign")
        return "\n" if atsign else ""

class FreshLine(Directive):
    parameters = (("count", 1, "int"),)

    def format(self, stream, params, args):
        (n,) = params
        if n > 0:
            stream.fresh_line()
            n -= 1
            while n > 0:
                stream.terpri()
                n -= 1
        return args

# Radix Control

def is_integer(n):
    return isinstance(n, int) and not isinstance(n, bool)

class Numeric(Directive):
    """Base class for numeric (radix control) directives."""

    modifiers_allowed = Modifiers.all
    parameters = (("mincol", 0, "int"), ("padchar", " ", "char"),
                  ("commachar", ",", "char"), ("commainterval", 3, "int"))
    radix = 10

    def format(self, stream, params, args):
        (n, args) = args.next()
        self.write_integer(stream, n, self.radix, *params)
        return args

    def write_integer(self, stream, n, radix,
                      mincol, padchar, commachar, comma_interval):
        if not is_integer(n):
            s = pformat(n, stream.options, print_base=10, print_radix=False,
                        print_escape=False)
            stream.write(s.rjust(mincol, padchar))
            return

        s = radix_string(abs(n), radix)
        sign = ("+" if n >= 0 else "-") if self.atsign else \
               ("-" if n < 0 else "")
        if self.colon:
            if padchar == "0" and mincol > len(s) + len(sign):
                # We pad with zeros first so that they can be commafied,
                # too (cf. CLiki Issue FORMAT-RADIX-COMMACHAR).  But in
                # order to figure out how many to add, we need to solve a
                # little constraint problem: the widest zero-padded number
                # whose commafied, signed form still fits in mincol.
                def col(n):
                    return n + (n-1)//comma_interval + len(sign)
                width = len(s)
                while col(width + 1) <= mincol:
                    width += 1
                s = s.rjust(width, padchar)

                # If we're printing a sign, and the width that we chose
                # above is a multiple of comma_interval, we'll need (at
                # most one) extra space to get up to mincol.
                padchar = " "

            s = commafy(s, commachar, comma_interval)
        stream.write((sign + s).rjust(mincol, padchar))

class Radix(Numeric):
    parameters = (("radix", None, "int"),) + Numeric.parameters

    def format(self, stream, params, args):
        radix = params[0]
        (n, args) = args.next()
        if radix is not None:
            self.write_integer(stream, n, radix, *params[1:])
        elif self.colon and self.atsign:
            stream.write("".join(roman_int(n, True)))
        elif self.atsign:
            stream.write("".join(roman_int(n)))
        elif self.colon:
            stream.write(itoo(n))
        else:
            stream.write(itoc(n))
        return args

class Decimal(Numeric):
    radix = 10

class Binary(Numeric):
    radix = 2

class Octal(Numeric):
    radix = 8

class Hexadecimal(Numeric):
    radix = 16

# Floating-point Printers

def is_real(x):
    if isinstance(x, bool) or not isinstance(x, (Real, decimal.Decimal)):
        return False
    elif isinstance(x, float):
        return isfinite(x)
    elif isinstance(x, decimal.Decimal):
        return x.is_finite()
    return True

class FloatingPoint(Directive):
    modifiers_allowed = Modifiers.atsign

    def format(self, stream, params, args):
        (x, args) = args.next()
        if is_real(x):
            stream.write(self.convert(x, *params))
        else:
            w = params[0] or 0
            s = pformat(x, stream.options, print_base=10,
                        print_escape=False)
            stream.write(s.rjust(w))
        return args

class FixedFloat(FloatingPoint):
    parameters = (("w", None, "int"), ("d", None, "int"), ("k", 0, "int"),
                  ("overflowchar", None, "char"), ("padchar", " ", "char"))

    def convert(self, x, w, d, k, overflowchar, padchar):
        return fixed_float(x, w, d, k, overflowchar, padchar, self.atsign)

class ExponentialFloat(FloatingPoint):
    parameters = (("w", None, "int"), ("d", None, "int"), ("e", None, "int"),
                  ("k", 1, "int"), ("overflowchar", None, "char"),
                  ("padchar", " ", "char"), ("exptchar", None, "char"))

    def convert(self, x, *params):
        return exponential_float(x, *params, atsign=self.atsign)

class GeneralFloat(ExponentialFloat):
    def convert(self, x, *params):
        return general_float(x, *params, atsign=self.atsign)

class Monetary(FloatingPoint):
    modifiers_allowed = Modifiers.all
    parameters = (("d", 2, "int"), ("n", 1, "int"), ("w", 0, "int"),
                  ("padchar", " ", "char"))

    def format(self, stream, params, args):
        (x, args) = args.next()
        (d, n, w, padchar) = params
        if is_real(x):
            stream.write(monetary_float(x, d, n, w, padchar,
                                        self.colon, self.atsign))
        else:
            s = pformat(x, stream.options, print_base=10,
                        print_escape=False)
            stream.write(s.rjust(w))
        return args

# Printer Operations

def pad_string(s, mincol, colinc, minpad, padchar, left=False):
    if colinc < 1:
        raise FormatError("colinc parameter must be positive")
    width = len(s) + minpad
    if width < mincol:
        width += colinc * ((mincol - width - 1) // colinc + 1)
    padding = padchar * (width - len(s))
    return padding + s if left else s + padding

class Padded(Directive):
    modifiers_allowed = Modifiers.all
    parameters = (("mincol", 0, "int"), ("colinc", 1, "int"),
                  ("minpad", 0, "int"), ("padchar", " ", "char"))
    need_prettyprinter = True
    escape = True

    def format(self, stream, params, args):
        (arg, args) = args.next()
        options = stream.options._replace(print_escape=self.escape)
        if self.colon and arg is None:
            arg = []
        if self.params:
            stream.write(pad_string(pformat(arg, options), *params,
                                    left=self.atsign))
        else:
            pprint_object(stream, arg, options)
        return args

class Aesthetic(Padded):
    escape = False

class Standard(Padded):
    escape = True

class Write(Directive):
    modifiers_allowed = Modifiers.all
    need_prettyprinter = True

    def format(self, stream, params, args):
        (arg, args) = args.next()
        options = stream.options
        if self.colon:
            options = options._replace(print_pretty=True)
        if self.atsign:
            options = options._replace(print_level=None, print_length=None)
        pprint_object(stream, arg, options)
        return args

# Pretty Printer Operations

class ConditionalNewline(Directive):
    modifiers_allowed = Modifiers.all
    need_prettyprinter = True

    def format(self, stream, params, args):
        stream.newline(MANDATORY if self.colon and self.atsign
                       else FILL if self.colon
                       else MISER if self.atsign
                       else LINEAR)
        return args

def insert_fill_newlines(body, parent):
    """Add a fill-style conditional newline after each run of blanks in
    the literal text of body."""
    result = []
    for x in body:
        if isinstance(x, str):
            for s in re.split("( +)", x):
                if s:
                    result.append(s)
                    if s.startswith(" "):
                        result.append(ConditionalNewline((), (), True, False,
                                                         parent.control,
                                                         parent.start,
                                                         parent.end, parent))
        else:
            result.append(x)
    return result

def plain_text(clause):
    if not all(isinstance(x, str) for x in clause):
        raise FormatError("prefix and suffix of ~~<...~~:> "
                          "must be plain text")
    return "".join(clause)

class LogicalBlock(DelimitedDirective):
    # Instances of this class are never created by the parser: the
    # delimited method of Justification changes the class of instances
    # closed with "~:>".

    need_prettyprinter = True

    def delimited(self):
        super(LogicalBlock, self).delimited()

        if any(s.colon for s in self.separators):
            raise FormatError("~~:; not permitted in ~~<...~~:>")
        if any(s.atsign for s in self.separators[1:]):
            raise FormatError("only the first ~~; may have an at-sign")

        prefix = "(" if self.colon else ""
        suffix = ")" if self.colon else ""
        if len(self.clauses) == 1:
            (body,) = self.clauses
        elif len(self.clauses) == 2:
            (prefix, body) = self.clauses
            prefix = plain_text(prefix)
        elif len(self.clauses) == 3:
            (prefix, body, suffix) = self.clauses
            prefix = plain_text(prefix)
            suffix = plain_text(suffix)
        else:
            raise FormatError("too many segments for ~~<...~~:>")

        if self.separators and self.separators[0].atsign:
            (self.prefix, self.per_line_prefix) = ("", prefix)
        else:
            (self.prefix, self.per_line_prefix) = (prefix, None)
        self.suffix = suffix
        if self.closing.atsign:
            body = insert_fill_newlines(body, self)
        self.body = tuple(body)

    def execute(self, stream, args):
        if self.atsign:
            (block_args, args) = (args, args.goto(len(args)))
        else:
            (arg, args) = args.next()
            if not isinstance(arg, (list, tuple)):
                pprint_object(stream, arg)
                return (args, None)
            block_args = Arguments(arg)
        with stream.logical_block(prefix=self.prefix,
                                  per_line_prefix=self.per_line_prefix,
                                  suffix=self.suffix) as block:
            if not block.print_level_exceeded:
                apply_directives(stream, self.body, block_args)
        return (args, None)

class Indentation(Directive):
    modifiers_allowed = Modifiers.colon
    parameters = (("n", 0, "int"),)
    need_prettyprinter = True

    def format(self, stream, params, args):
        (n,) = params
        stream.indent(n, relative=self.colon)
        return args

# Layout Control

class Tabulate(Directive):
    modifiers_allowed = Modifiers.all
    parameters = (("colnum", 1, "int"), ("colinc", 1, "int"))

    def __init__(self, *args):
        super(Tabulate, self).__init__(*args)
        # Section-relative tabulation needs to know where the innermost
        # logical block started.
        self.need_prettyprinter = self.colon

    def format(self, stream, params, args):
        def ceiling(a, b):
            q, r = divmod(a, b)
            return (q + 1) if r else q

        def output_spaces(stream, n):
            stream.write(" " * n)

        origin = stream.block.start_col if self.colon else 0
        cur = stream.charpos - origin
        if self.atsign:
            # relative tabulation
            (colrel, colinc) = params
            if colinc > 0:
                output_spaces(stream,
                              colinc * ceiling(cur + colrel, colinc) - cur)
            else:
                output_spaces(stream, colrel)
        else:
            # absolute tabulation
            (colnum, colinc) = params
            if cur < colnum:
                output_spaces(stream, colnum - cur)
            elif colinc > 0:
                output_spaces(stream, colinc - ((cur - colnum) % colinc))
        return args

class EndJustification(Closing):
    modifiers_allowed = Modifiers.all

class Justification(DelimitedDirective):
    modifiers_allowed = Modifiers.all
    parameters = (("mincol", 0, "int"), ("colinc", 1, "int"),
                  ("minpad", 0, "int"), ("padchar", " ", "char"))
    closing_class = EndJustification

    def delimited(self):
        if self.closing.colon:
            # ~<...~:> is a logical block, not a justification.
            self.__class__ = LogicalBlock
            self.delimited()
            return

        super(Justification, self).delimited()
        if self.closing.atsign:
            raise FormatError("~~@> is only allowed with ~~<...~~:@>")
        if any(s.atsign for s in self.separators):
            raise FormatError("~~@; not permitted in ~~<...~~>")
        if any(s.colon for s in self.separators[1:]):
            raise FormatError("only the first ~~; may have a colon")

        segments = self.clauses
        if self.separators and self.separators[0].colon:
            # The first clause is printed before the rest if they
            # would not fit on the current line.
            self.overflow = Formatter(segments[0])
            self.overflow_separator = self.separators[0]
            segments = segments[1:]
        else:
            self.overflow = None
        self.segments = tuple(Formatter(s) for s in segments)

    def execute(self, stream, args):
        ((mincol, colinc, minpad, padchar), args) = self.realize(args)
        if colinc < 1:
            raise FormatError("colinc parameter must be positive")
        options = stream.options

        overflow = None
        if self.overflow:
            (overflow, args, exit) = render_to_string(self.overflow, args,
                                                      options)
            ((spare, width), args) = self.overflow_separator.realize(args)
        strs = []
        for segment in self.segments:
            (s, args, exit) = render_to_string(segment, args, options)
            if exit:
                break
            strs.append(s)

        slots = max(1, len(strs) - 1 + (1 if self.colon else 0) \
                                     + (1 if self.atsign else 0))
        chars = sum(len(s) for s in strs)
        minout = chars + slots * minpad
        if minout <= mincol:
            columns = mincol
        else:
            columns = mincol + colinc * (1 + (minout - mincol - 1) // colinc)
        total_pad = columns - chars
        pad = max(minpad, total_pad // slots)
        extra_pad = total_pad - pad * slots

        if overflow is not None:
            if width is None:
                width = stream.max_column
            if width is not None and \
                    stream.charpos + spare + columns > width:
                stream.write(overflow)

        # Padding goes between the segments, and also before the first
        # with a colon and after the last with an at-sign; a single segment
        # is right-justified.  Any extra padding goes to the leftmost slots.
        output = []
        pad_only = self.colon or (len(strs) == 1 and not self.atsign)
        i = 0
        while i < len(strs):
            if not pad_only:
                output.append(strs[i])
            if pad_only or i + 1 < len(strs) or self.atsign:
                output.append(padchar * pad)
            if extra_pad > 0:
                output.append(padchar)
            extra_pad -= 1
            if not pad_only:
                i += 1
            pad_only = False
        stream.write("".join(output))
        return (args, None)

# Control-Flow Operations

class GoTo(Directive):
    modifiers_allowed = Modifiers.colon | Modifiers.atsign
    parameters = (("n", None, "int"),)

    def format(self, stream, params, args):
        (n,) = params
        if self.atsign:
            return args.goto(0 if n is None else n)
        n = 1 if n is None else n
        return args.relative(-n if self.colon else n)

class EndConditional(Closing):
    pass

class Conditional(DelimitedDirective):
    modifiers_allowed = Modifiers.colon | Modifiers.atsign
    parameters = (("selector", None, "int"),)
    closing_class = EndConditional

    def delimited(self):
        super(Conditional, self).delimited()

        if self.colon:
            if len(self.clauses) != 2:
                raise FormatError("must specify exactly two sections")
        elif self.atsign:
            if len(self.clauses) != 1:
                raise FormatError("can only specify one section")
        if any(s.atsign for s in self.separators):
            raise FormatError("~~@; not permitted in ~~[...~~]")
        if any(s.colon for s in self.separators[:-1]) or \
                ((self.colon or self.atsign) and
                 any(s.colon for s in self.separators)):
            raise FormatError("only the last ~~; may have a colon")

        if self.separators and self.separators[-1].colon:
            # "If the last ~; used to separate clauses is ~:; instead,
            # then the last clause is an 'else' clause that is performed
            # if no other clause is selected."
            self.choices = self.clauses[:-1]
            self.else_clause = self.clauses[-1]
        else:
            self.choices = self.clauses
            self.else_clause = None

    def execute(self, stream, args):
        if self.colon:
            # "~:[ALTERNATIVE~;CONSEQUENT~] selects the ALTERNATIVE control
            # string if arg is false, and selects the CONSEQUENT control
            # string otherwise."
            (arg, args) = args.next()
            return apply_directives(stream, self.clauses[1 if arg else 0],
                                    args)
        elif self.atsign:
            # "~@[CONSEQUENT~] tests the argument.  If it is true, then
            # the argument is not used up by the ~[ command but remains
            # as the next one to be processed, and the one clause
            # CONSEQUENT is processed.  If the arg is false, then the
            # argument is used up, and the clause is not processed."
            if args.peek():
                return apply_directives(stream, self.clauses[0], args)
            (arg, args) = args.next()
            return (args, None)

        ((n,), args) = self.realize(args)
        if n is None:
            (n, args) = args.next()
        if not is_integer(n):
            raise FormatError("argument to ~~[ must be an integer, not ~S", n)
        if 0 <= n < len(self.choices):
            return apply_directives(stream, self.choices[n], args)
        elif self.else_clause is not None:
            return apply_directives(stream, self.else_clause, args)
        return (args, None)

class EndIteration(Closing):
    modifiers_allowed = Modifiers.colon

class Iteration(DelimitedDirective):
    modifiers_allowed = Modifiers.all
    parameters = (("max", None, "int"),)
    closing_class = EndIteration
    separators_allowed = False

    def delimited(self):
        super(Iteration, self).delimited()
        (self.body,) = self.clauses
        if not self.body:
            # The control string comes from the arguments.
            self.need_prettyprinter = True

    def execute(self, stream, args):
        ((max_iterations,), args) = self.realize(args)
        if self.body:
            body = self.body
        else:
            (control, args) = args.next()
            body = compile_control(control)
        if self.atsign:
            items = args
        else:
            (items, args) = args.next()
            items = Arguments(items)

        # With ~:}, the body is processed at least once.
        force = self.closing.colon
        i = 0
        while max_iterations is None or i < max_iterations:
            if items.empty and not (force and i == 0):
                break
            i += 1
            if self.colon:
                (sublist, items) = items.next_or_none()
                if sublist is None:
                    sublist = ()
                (_, exit) = apply_directives(stream, body,
                                             Arguments(sublist, outer=items))
                if exit == UP_UP_AND_OUT:
                    break
            else:
                position = items.position
                (items, exit) = apply_directives(stream, body, items)
                if exit:
                    break
                if max_iterations is None and not items.empty and \
                        items.position == position:
                    raise IterationNonProgress()
        return (items if self.atsign else args, None)

class Recursive(Directive):
    modifiers_allowed = Modifiers.atsign
    need_prettyprinter = True

    def execute(self, stream, args):
        (control, args) = args.next()
        directives = compile_control(control)
        if self.atsign:
            return apply_directives(stream, directives, args)
        (sublist, args) = args.next()
        apply_directives(stream, directives, Arguments(sublist))
        return (args, None)

# Miscellaneous Operations

class EndCaseConversion(Closing):
    pass

class CaseConversion(DelimitedDirective):
    modifiers_allowed = Modifiers.all
    closing_class = EndCaseConversion
    separators_allowed = False

    def delimited(self):
        super(CaseConversion, self).delimited()
        (self.body,) = self.clauses
        self.mode = "upcase" if self.colon and self.atsign \
                             else "capitalize" if self.colon \
                             else "capitalize-first" if self.atsign \
                             else "downcase"

    def execute(self, stream, args):
        return apply_directives(CaseConvertingStream(stream, self.mode),
                                self.body, args)

class Plural(Directive):
    modifiers_allowed = Modifiers.all

    def format(self, stream, params, args):
        if self.colon:
            args = args.relative(-1)
        (arg, args) = args.next()
        if self.atsign:
            stream.write("y" if arg == 1 else "ies")
        else:
            stream.write("" if arg == 1 else "s")
        return args

# Miscellaneous Pseudo-Operations

class Separator(Directive):
    modifiers_allowed = Modifiers.colon | Modifiers.atsign
    parameters = (("spare", 0, "int"), ("width", None, "int"))

class Escape(Directive):
    modifiers_allowed = Modifiers.colon
    parameters = (("arg1", None, None), ("arg2", None, None),
                  ("arg3", None, None))

    def __init__(self, *args):
        super(Escape, self).__init__(*args)

        if self.colon:
            iteration = self.governor(Iteration)
            if iteration is None or not iteration.colon:
                raise FormatError("can't have ~~:^ outside of a "
                                  "~~:{...~~} construct")
        self.exit = UP_UP_AND_OUT if self.colon else UP_AND_OUT

    def execute(self, stream, args):
        ((arg1, arg2, arg3), args) = self.realize(args)
        if arg3 is not None:
            done = arg1 <= arg2 <= arg3
        elif arg2 is not None:
            done = arg1 == arg2
        elif arg1 is not None:
            done = arg1 == 0
        else:
            done = (args.outer if self.colon else args).empty
        return (args, self.exit if done else None)

format_directives = dict()

def register_directive(char, cls):
    assert len(char) == 1, "only single-character directives allowed"
    assert issubclass(cls, Directive), "invalid format directive class"
    format_directives[char.upper()] = format_directives[char.lower()] = cls

for (char, cls) in {
    "C": Character, "%": Newline, "&": FreshLine, "|": Page, "~": Tilde,
    "\n": Continuation,
    "R": Radix, "D": Decimal, "B": Binary, "O": Octal, "X": Hexadecimal,
    "F": FixedFloat, "E": ExponentialFloat, "G": GeneralFloat, "$": Monetary,
    "A": Aesthetic, "S": Standard, "W": Write,
    "_": ConditionalNewline, "I": Indentation,
    "T": Tabulate, "<": Justification, ">": EndJustification,
    "*": GoTo, "[": Conditional, "]": EndConditional,
    "{": Iteration, "}": EndIteration, "?": Recursive,
    "(": CaseConversion, ")": EndCaseConversion, "P": Plural,
    ";": Separator, "^": Escape,
}.items():
    register_directive(char, cls)

def parse_parameters(control, i):
    """Parse the prefix parameters of the directive starting at index i.
    Returns the parameters, their offsets, and the index just past them."""
    params = []
    offsets = []
    end = len(control)
    while i < end:
        mark = i
        c = control[i]
        if c == ",":
            # empty parameter
            params.append(None)
            offsets.append(mark)
            i += 1
            continue
        elif c in "+-0123456789":
            i += 1
            while i < end and control[i].isdigit():
                i += 1
            if not control[mark:i].lstrip("+-"):
                raise FormatSyntaxError(control, mark,
                                        "invalid numeric parameter")
            params.append(int(control[mark:i]))
        elif c == "'":
            if i + 1 >= end:
                raise FormatSyntaxError(control, mark,
                                        "missing character parameter")
            params.append(control[i+1])
            i += 2
        elif c in "Vv":
            params.append(Directive.variable_parameter)
            i += 1
        elif c == "#":
            params.append(Directive.remaining_parameter)
            i += 1
        else:
            break
        offsets.append(mark)
        if i < end and control[i] == ",":
            i += 1
    return (params, offsets, i)

def parse_modifiers(control, i):
    colon = atsign = False
    while i < len(control):
        if control[i] == ":":
            if colon:
                raise FormatSyntaxError(control, i, "too many colons")
            colon = True
        elif control[i] == "@":
            if atsign:
                raise FormatSyntaxError(control, i, "too many at-signs")
            atsign = True
        else:
            break
        i += 1
    return (colon, atsign, i)

def parse_control_string(control, start=0, parent=None):
    """Yield a list of strings and Directive instances corresponding to the
    given control string.  With a parent, stop after the directive that
    closes it."""

    assert isinstance(control, str), "control string must be a string"
    assert start >= 0, "can't start parsing from end"

    i = start
    end = len(control)
    while i < end:
        tilde = control.find("~", i)
        if tilde == -1:
            yield control[i:end]
            break
        elif tilde > i:
            yield control[i:tilde]

        (params, offsets, i) = parse_parameters(control, tilde + 1)
        (colon, atsign, i) = parse_modifiers(control, i)
        if i >= end:
            raise FormatSyntaxError(control, tilde, "unterminated directive")
        char = control[i]
        i += 1
        try:
            cls = format_directives[char]
        except KeyError:
            raise FormatSyntaxError(control, tilde,
                                    "unknown format directive")
        try:
            d = cls(params, offsets, colon, atsign, control, tilde, i, parent)
        except FormatSyntaxError:
            raise
        except FormatError as e:
            raise FormatSyntaxError(control, tilde, e.message, *e.args)

        if char == "\n" and not colon:
            while i < end and control[i] in " \t":
                i += 1
        if isinstance(d, DelimitedDirective):
            for x in parse_control_string(control, i, d):
                try:
                    d.append(x)
                except FormatSyntaxError:
                    raise
                except FormatError as e:
                    offset = d.start if x is d.closing else x.start
                    raise FormatSyntaxError(control, offset,
                                            e.message, *e.args)
            if d.closing is None:
                raise FormatSyntaxError(control, tilde,
                                        "no closing bracket found")
            i = d.end
        elif parent is None and isinstance(d, (Closing, Separator)):
            raise FormatSyntaxError(control, tilde,
                                    "no matching opening directive")
        if d != "":
            yield d
        if parent is not None and d is parent.closing:
            return

@lru_cache(maxsize=256)
def compile_control_string(control):
    """Return the compiled form of control, a tuple of strings and
    Directive instances."""
    return tuple(parse_control_string(control))

def apply_directives(stream, directives, args):
    """Apply directives to args in order.  Returns the remaining arguments
    and the exit signal that stopped processing, if any."""
    write = stream.write
    for x in directives:
        if isinstance(x, str):
            write(x)
        else:
            (args, exit) = x.execute(stream, args)
            if exit:
                return (args, exit)
    return (args, None)

class Formatter(object):
    def __init__(self, control):
        if isinstance(control, str):
            self.directives = compile_control_string(control)
        elif isinstance(control, (tuple, list)):
            self.directives = tuple(control)
        else:
            raise TypeError("control must be a string or a sequence "
                            "of directives")
        self.need_prettyprinter = any(x.need_prettyprinter
                                      for x in self.directives
                                      if isinstance(x, Directive))

    def wrap(self, stream, options=None):
        """Return a stream suitable for applying the directives to: the
        given stream, or a column-tracking or pretty-printing wrapper."""
        if self.need_prettyprinter and not hasattr(stream, "newline"):
            return PrettyPrinter(stream, options=options)
        elif not hasattr(stream, "charpos"):
            options = options or getattr(stream, "options", None) \
                              or PrinterVars()
            return CharposStream(stream, 0, options.right_margin, options)
        return stream

    def apply(self, stream, args, options=None):
        output = self.wrap(stream, options)
        result = apply_directives(output, self.directives, args)
        if output is not stream and isinstance(output, PrettyPrinter):
            output.flush()
        return result

    def __call__(self, stream, *args, options=None):
        if len(args) == 1 and isinstance(args[0], Arguments):
            args = args[0]
        else:
            args = Arguments(args)
        (args, exit) = self.apply(stream, args, options)
        return args

def format(destination, control, *args, options=None):
    """Format args according to control.  The destination may be None, to
    return the output as a string; True, for standard output; or a
    stream."""
    if destination is None:
        stream = StringIO()
    elif destination is True:
        stream = sys.stdout
    else:
        stream = destination
    f = control if isinstance(control, Formatter) else Formatter(control)
    f(stream, *args, options=options)
    if destination is None:
        return stream.getvalue()
