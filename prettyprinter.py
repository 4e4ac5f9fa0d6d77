"""A pretty printer in the style of Waters' XP, as found in Common Lisp.

Output goes through a CharposStream.  As long as no conditional newline is
pending, the printer writes straight through ("writing" mode).  As soon as
one is enqueued, everything is buffered as tokens ("buffering" mode) until
it can be decided which pending newlines must be broken; once the buffer
has been emptied, the printer goes back to writing directly."""

import sys
from collections import deque
from io import StringIO
from charpos import CharposStream
from numerals import radix_string
from printervars import PrinterVars

__all__ = ["PrettyPrinter", "pprint", "pformat", "pprint_object",
           "default_dispatch", "LINEAR", "FILL", "MISER", "MANDATORY",
           "LITERAL"]

# Conditional newline kinds.
LINEAR = "linear"
FILL = "fill"
MISER = "miser"
MANDATORY = "mandatory"
LITERAL = "literal"

WRITING = "writing"
BUFFERING = "buffering"

class PrintLevelExceeded(Exception):
    pass

class Block(object):
    """A logical block.  Blocks form a tree through their parent links;
    only the printer that owns a block ever changes it."""

    def __init__(self, parent=None, prefix="", per_line_prefix=None,
                 suffix=""):
        self.parent = parent
        self.prefix = prefix or ""
        self.per_line_prefix = per_line_prefix
        self.suffix = suffix or ""
        self.start_col = 0
        self.indent = 0
        self.done_nl = False
        self.intra_block_nl = False
        self.line_prefix = parent.line_prefix if parent else ""
        self.depth = parent.depth + 1 if parent else 0

    def update_nl_state(self):
        """Record that a newline has just fired in this block."""
        self.done_nl = True
        self.intra_block_nl = False
        block = self.parent
        while block is not None:
            block.done_nl = True
            block.intra_block_nl = True
            block = block.parent

def is_ancestor(parent, child):
    """True if parent is a proper ancestor of child."""
    block = child.parent
    while block is not None:
        if block is parent:
            return True
        block = block.parent
    return False

class Token(object):
    """Base class for buffered output.

    The positions are logical character offsets, used only to measure how
    much room a run of tokens would take on one line."""

    trailing_white_space = None

    def __init__(self, start_pos=0, end_pos=0):
        self.start_pos = start_pos
        self.end_pos = end_pos

    def output(self, pp):
        """Send this token to the underlying stream of pp."""
        pass

class Text(Token):
    def __init__(self, string, trailing_white_space, *args):
        super(Text, self).__init__(*args)
        self.string = string
        self.trailing_white_space = trailing_white_space

    def output(self, pp):
        pp.base.write(self.string)

class BlockStart(Token):
    def __init__(self, block, *args):
        super(BlockStart, self).__init__(*args)
        self.block = block

    def output(self, pp):
        block = self.block
        if pp.block_callback:
            pp.block_callback("start")
        if block.prefix:
            pp.base.write(block.prefix)
        parent_prefix = block.parent.line_prefix if block.parent else ""
        if block.per_line_prefix:
            # Per-line prefixes print directly below the place where the
            # block's prefix appeared on its first line.
            offset = pp.base.charpos
            block.line_prefix = parent_prefix + \
                                " " * (offset - len(parent_prefix)) + \
                                block.per_line_prefix
            pp.base.write(block.per_line_prefix)
        else:
            block.line_prefix = parent_prefix
        block.start_col = block.indent = pp.base.charpos

class BlockEnd(Token):
    def __init__(self, block, *args):
        super(BlockEnd, self).__init__(*args)
        self.block = block

    def output(self, pp):
        if self.block.suffix:
            pp.base.write(self.block.suffix)
        if pp.block_callback:
            pp.block_callback("end")

class Newline(Token):
    def __init__(self, kind, block, *args):
        super(Newline, self).__init__(*args)
        self.kind = kind
        self.block = block

    def fires(self, pp, section, subsection):
        """Decide whether this newline breaks the line, given the section
        and sub-section that follow it."""
        block = self.block
        if self.kind == LINEAR:
            return block.done_nl or not pp.tokens_fit(section)
        elif self.kind == MISER:
            return pp.miser_newline(block, section)
        elif self.kind == FILL:
            return block.intra_block_nl or \
                not pp.tokens_fit(subsection) or \
                pp.miser_newline(block, section)
        else:
            return True

    def output(self, pp):
        # Reached only once everything up to the end of the buffer is known
        # to fit, so only newlines forced by an earlier break fire here.
        block = self.block
        if self.kind == MANDATORY or \
                (self.kind == LINEAR and block.done_nl) or \
                (self.kind == MISER and block.done_nl and pp.miser_mode(block)):
            pp.emit_newline(self)
        else:
            pp.write_white_space()

class Indent(Token):
    def __init__(self, block, offset, relative, *args):
        super(Indent, self).__init__(*args)
        self.block = block
        self.offset = offset
        self.relative = relative

    def output(self, pp):
        # Held whitespace still counts toward the current column.
        if self.relative:
            base = pp.base.charpos + len(pp.trailing_white_space or "")
        else:
            base = self.block.start_col
        self.block.indent = base + self.offset

def buffer_length(tokens):
    return tokens[-1].end_pos - tokens[0].start_pos if tokens else 0

def split_at_newline(tokens):
    for (i, token) in enumerate(tokens):
        if isinstance(token, Newline):
            return (tokens[:i], tokens[i:])
    return (tokens, [])

def get_section(tokens):
    """Split the tokens following the newline at the head of tokens into
    the section up to the next newline belonging to an enclosing block,
    and the remainder starting with that newline."""
    block = tokens[0].block
    i = 1
    while i < len(tokens):
        token = tokens[i]
        if isinstance(token, Newline) and is_ancestor(token.block, block):
            break
        i += 1
    return (tokens[1:i], tokens[i:])

def get_sub_section(tokens):
    """The tokens following the newline at the head of tokens, up to the
    next newline in the same or an enclosing block."""
    block = tokens[0].block
    i = 1
    while i < len(tokens):
        token = tokens[i]
        if isinstance(token, Newline) and \
                (token.block is block or is_ancestor(token.block, block)):
            break
        i += 1
    return tokens[1:i]

class LogicalBlock(object):
    """A context manager for logical blocks.

    Entering opens a block on the printer, unless doing so would exceed
    print_level, in which case "#" is printed instead and the block is
    treated as empty.  Iterating over the manager yields the elements of
    lst, printing "..." in place of any beyond print_length."""

    def __init__(self, pp, lst=None, options=None,
                 prefix="", per_line_prefix=None, suffix=""):
        self.pp = pp
        self.list = list(lst) if lst is not None else []
        self.len = len(self.list)
        self.options = options or pp.options
        self.prefix = prefix
        self.per_line_prefix = per_line_prefix
        self.suffix = suffix
        self.index = 0
        self.print_level_exceeded = False

    def __enter__(self):
        try:
            self.pp.begin(self.prefix, self.per_line_prefix, self.suffix,
                          level=self.options.print_level)
        except PrintLevelExceeded:
            self.pp.write("#")
            self.print_level_exceeded = True
            self.len = 0
        return self

    def __exit__(self, type, value, traceback):
        if not self.print_level_exceeded:
            self.pp.end()
        return type is not None and issubclass(type, StopIteration)

    def __iter__(self):
        return self

    def __next__(self):
        index = self.index
        if index == self.len:
            raise StopIteration
        elif index == self.options.print_length:
            self.pp.write("...")
            raise StopIteration
        self.index = index + 1
        return self.list[index]

    def exit_if_list_exhausted(self):
        if self.index == self.len:
            raise StopIteration

class PrettyPrinter(object):
    def __init__(self, stream=None, width=None, charpos=None, options=None,
                 block_callback=None):
        """Pretty-print to stream, with right margin at width characters,
        starting at position charpos.  A width of None means the right
        margin given by options."""
        if stream is None:
            stream = sys.stdout
        options = options or getattr(stream, "options", None) or PrinterVars()
        if width is not None:
            if width <= 0:
                raise ValueError("margin must be positive")
            options = options._replace(right_margin=width)
        if charpos is None:
            charpos = getattr(stream, "charpos", 0)
        self.options = options
        self.base = CharposStream(stream, charpos, options.right_margin,
                                  options)
        self.block_callback = block_callback
        self.block = Block()
        self.mode = WRITING
        self.buffer = []
        self.pos = 0
        self.trailing_white_space = None
        self.closed = False

    @property
    def max_column(self):
        return self.base.max_column

    @max_column.setter
    def max_column(self, value):
        self.base.max_column = value

    @property
    def line(self):
        return self.base.line

    @property
    def charpos(self):
        """The column at which the next character would appear if none of
        the pending conditional newlines were to fire."""
        pending = len(self.trailing_white_space or "")
        if self.buffer:
            pending += self.pos - self.buffer[0].start_pos
        return self.base.charpos + pending

    # Buffer management.

    def tokens_fit(self, tokens):
        max_column = self.base.max_column
        return max_column is None or \
            self.base.charpos + buffer_length(tokens) < max_column

    def miser_mode(self, block):
        miser_width = self.options.miser_width
        max_column = self.base.max_column
        return miser_width is not None and max_column is not None and \
            block.start_col >= max_column - miser_width

    def miser_newline(self, block, section):
        return self.miser_mode(block) and \
            (block.done_nl or not self.tokens_fit(section))

    def write_white_space(self):
        if self.trailing_white_space:
            self.base.write(self.trailing_white_space)
        self.trailing_white_space = None

    def emit_newline(self, newline):
        block = newline.block
        self.base.write("\n")
        self.trailing_white_space = None
        self.base.write(block.line_prefix)
        self.base.write(" " * (block.indent - len(block.line_prefix)))
        block.update_nl_state()

    def write_tokens(self, tokens, force):
        for token in tokens:
            if isinstance(token, Indent):
                token.output(self)
                continue
            if not isinstance(token, Newline):
                self.write_white_space()
            token.output(self)
            self.trailing_white_space = token.trailing_white_space
        if force:
            self.write_white_space()

    def write_token_string(self, tokens):
        """Output tokens up to and including the first newline whose fate
        can be decided, and return the tokens still to be printed."""
        (before, after) = split_at_newline(tokens)
        if before:
            self.write_tokens(before, False)
        if not after:
            return after
        newline = after[0]
        (section, remainder) = get_section(after)
        if newline.fires(self, section, get_sub_section(after)):
            self.emit_newline(newline)
            result = after[1:]
        else:
            result = after
        if not self.tokens_fit(result):
            # The section is too long for the line; break it up, too.
            rest = self.write_token_string(section)
            if rest == section:
                self.write_tokens(section, False)
                return remainder
            return rest + remainder
        return result

    def write_line(self):
        buffer = self.buffer
        while not self.tokens_fit(buffer):
            rest = self.write_token_string(buffer)
            if rest == buffer:
                break
            buffer = rest
        self.buffer = buffer

    def add_to_buffer(self, token):
        self.buffer.append(token)
        if not self.tokens_fit(self.buffer):
            self.write_line()
            if not self.buffer:
                self.mode = WRITING

    def write_buffered_output(self):
        self.write_line()
        if self.buffer:
            self.write_tokens(self.buffer, True)
            self.buffer = []
        self.mode = WRITING

    # Stream operations.

    def write_text(self, s):
        if not s:
            return
        string = s.rstrip()
        white_space = s[len(string):] or None
        if self.mode == WRITING:
            self.write_white_space()
            self.base.write(string)
            self.trailing_white_space = white_space
        else:
            start = self.pos
            self.pos += len(s)
            self.add_to_buffer(Text(string, white_space, start, self.pos))

    def write(self, s):
        """Write a string.  Embedded newlines are literal newlines."""
        assert not self.closed, "I/O operation on closed stream"
        lines = s.split("\n")
        for line in lines[:-1]:
            self.write_text(line)
            self.newline(LITERAL)
        self.write_text(lines[-1])

    def begin(self, prefix="", per_line_prefix=None, suffix="", level=None):
        """Begin a new logical block, unless there are already level or
        more blocks open."""
        assert not self.closed, "I/O operation on closed stream"
        if level is not None and self.block.depth >= level:
            raise PrintLevelExceeded(self.block.depth)
        block = Block(self.block, prefix, per_line_prefix, suffix)
        self.block = block
        if self.mode == WRITING:
            self.write_white_space()
            BlockStart(block).output(self)
        else:
            width = len(block.prefix) + len(block.per_line_prefix or "")
            # Provisional, until the start token is actually printed.
            block.start_col = block.indent = self.charpos + width
            start = self.pos
            self.pos += width
            self.add_to_buffer(BlockStart(block, start, self.pos))
        return block

    def end(self):
        """End the current logical block."""
        assert not self.closed, "I/O operation on closed stream"
        block = self.block
        assert block.parent is not None, "no logical block to end"
        if self.mode == WRITING:
            self.write_white_space()
            BlockEnd(block).output(self)
        else:
            start = self.pos
            self.pos += len(block.suffix)
            self.add_to_buffer(BlockEnd(block, start, self.pos))
        self.block = block.parent

    def newline(self, kind=LINEAR):
        """Enqueue a conditional newline of the given kind.  A literal
        newline always breaks, and settles everything before it."""
        assert not self.closed, "I/O operation on closed stream"
        if kind == LITERAL:
            self.write_buffered_output()
            self.write_white_space()
            self.base.write("\n" + self.block.line_prefix)
            self.block.update_nl_state()
        else:
            self.mode = BUFFERING
            self.add_to_buffer(Newline(kind, self.block, self.pos, self.pos))

    def indent(self, offset=0, relative=False):
        """Set the indentation of the current logical block to offset
        columns past its start, or if relative, past the current column."""
        assert not self.closed, "I/O operation on closed stream"
        if self.mode == WRITING:
            Indent(self.block, offset, relative).output(self)
        else:
            self.add_to_buffer(Indent(self.block, offset, relative,
                                      self.pos, self.pos))

    def logical_block(self, lst=None, options=None, prefix="",
                      per_line_prefix=None, suffix=""):
        """Return a context manager for a new logical block."""
        assert not self.closed, "I/O operation on closed stream"
        return LogicalBlock(self, lst, options, prefix, per_line_prefix,
                            suffix)

    def pprint(self, obj, options=None):
        """Pretty-print the given object."""
        assert not self.closed, "I/O operation on closed stream"
        pprint_object(self, obj, options or self.options)

    def terpri(self):
        self.write("\n")

    def fresh_line(self):
        if self.charpos > 0:
            self.terpri()
            return True
        else:
            return False

    def flush(self):
        """Output everything, deciding any pending newlines."""
        self.write_buffered_output()
        self.write_white_space()
        self.base.flush()

    def getvalue(self):
        self.flush()
        return self.base.getvalue()

    def close(self):
        if not self.closed:
            self.flush()
            assert self.block.parent is None, "unclosed logical block"
            self.closed = True

# Printing objects.

radix_prefixes = {2: "0b", 8: "0o", 10: "", 16: "0x"}

def integer_string(n, options):
    base = options.print_base
    s = radix_string(abs(n), base)
    if options.print_radix:
        s = radix_prefixes.get(base, "#%dr" % base) + s
    return "-" + s if n < 0 else s

def default_dispatch(stream, obj, options):
    """Print obj to stream, which must support the pretty printer
    operations."""
    def inflection(obj):
        if isinstance(obj, list):
            return ("[", "]")
        else:
            return ("%s([" % type(obj).__name__, "])")

    def separator():
        stream.write(", ")
        if options.print_pretty:
            stream.newline(FILL)

    if isinstance(obj, str):
        stream.write(repr(obj) if options.print_escape else obj)
    elif isinstance(obj, bool):
        stream.write(str(obj))
    elif isinstance(obj, int):
        stream.write(integer_string(obj, options))
    elif isinstance(obj, (float, complex)):
        stream.write(repr(obj) if options.print_escape else str(obj))
    elif isinstance(obj, (list, set, frozenset, deque)):
        (prefix, suffix) = inflection(obj)
        with stream.logical_block(obj, options,
                                  prefix=prefix, suffix=suffix) as l:
            for x in l:
                pprint_object(stream, x, options)
                l.exit_if_list_exhausted()
                separator()
    elif isinstance(obj, tuple):
        with stream.logical_block(obj, options, prefix="(", suffix=")") as l:
            x = next(l)
            pprint_object(stream, x, options)
            stream.write(",")
            l.exit_if_list_exhausted()
            stream.write(" ")
            if options.print_pretty:
                stream.newline(FILL)
            for x in l:
                pprint_object(stream, x, options)
                l.exit_if_list_exhausted()
                separator()
    elif isinstance(obj, dict):
        with stream.logical_block(obj.items(), options,
                                  prefix="{", suffix="}") as l:
            for (key, value) in l:
                pprint_object(stream, key, options)
                stream.write(": ")
                pprint_object(stream, value, options)
                l.exit_if_list_exhausted()
                separator()
    elif options.print_pretty and hasattr(obj, "__pprint__"):
        obj.__pprint__(stream, options)
    else:
        stream.write(repr(obj) if options.print_escape else str(obj))

def pprint_object(stream, obj, options=None):
    """Print obj using the dispatch function of options."""
    options = options or stream.options
    (options.dispatch or default_dispatch)(stream, obj, options)

def pformat(obj, options=None, **overrides):
    """Return the printed representation of obj as a string."""
    options = (options or PrinterVars())._replace(**overrides)
    stringstream = StringIO()
    pp = PrettyPrinter(stringstream, charpos=0, options=options)
    pp.pprint(obj)
    pp.close()
    return stringstream.getvalue()

def pprint(obj, stream=None, width=None, charpos=None, options=None,
           **overrides):
    overrides.setdefault("print_pretty", True)
    options = (options or PrinterVars())._replace(**overrides)
    pp = PrettyPrinter(stream, width, charpos, options)
    pp.pprint(obj)
    pp.terpri()
    pp.close()
