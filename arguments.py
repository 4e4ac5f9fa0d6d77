from formaterrors import ArgumentUnderflow

__all__ = ["Arguments"]

class Arguments(object):
    """A cursor over a sequence of format arguments.

    Arguments are never modified in place: every operation that moves the
    cursor returns a new instance, so a directive may hold on to an old
    position and come back to it.  The outer attribute is the cursor over
    the enclosing list of sublists (for ~:{ and ~:^), or None."""

    __slots__ = ("args", "position", "outer")

    def __init__(self, args=(), position=0, outer=None):
        self.args = args if isinstance(args, tuple) else tuple(args)
        self.position = position
        self.outer = outer

    def __len__(self): return len(self.args)

    def __repr__(self):
        return "Arguments(%r, %d)" % (self.args, self.position)

    @property
    def remaining(self):
        return len(self.args) - self.position

    @property
    def empty(self):
        return self.position >= len(self.args)

    @property
    def rest(self):
        return self.args[self.position:]

    def next(self):
        """Return the next argument and a cursor positioned after it."""
        if self.empty:
            raise ArgumentUnderflow()
        return (self.args[self.position],
                Arguments(self.args, self.position + 1, self.outer))

    def next_or_none(self):
        if self.empty:
            return (None, self)
        return self.next()

    def peek(self, n=0):
        i = self.position + n
        if i < 0 or i >= len(self.args):
            raise ArgumentUnderflow()
        return self.args[i]

    def goto(self, n):
        """Return a cursor at absolute position n."""
        if n < 0 or n > len(self.args):
            raise ArgumentUnderflow("argument index ~D is out of bounds", n)
        return Arguments(self.args, n, self.outer)

    def relative(self, n):
        return self.goto(self.position + n)
