"""Printer control variables.

Rather than a set of global variables that are dynamically rebound, the
printer variables are carried around as a single immutable value.  A nested
override is a new value made with _replace, e.g.,

    options._replace(print_pretty=True)

and is passed explicitly to whatever needs it."""

from collections import namedtuple

__all__ = ["PrinterVars"]

class PrinterVars(namedtuple("PrinterVars",
                             ["right_margin", "miser_width",
                              "print_base", "print_radix",
                              "print_pretty", "print_escape",
                              "print_level", "print_length",
                              "dispatch"])):
    """right_margin: the column at which lines should be broken, or None
    for no limit.

    miser_width: if a logical block starts within this many columns of the
    right margin, miser-style conditional newlines are enabled; None
    disables miser style altogether.

    print_base, print_radix: the radix in which integers are printed, and
    whether to mark the radix.

    print_pretty: whether the default dispatch inserts fill-style
    conditional newlines between the elements of a container.

    print_escape: print objects readably (repr) rather than aesthetically
    (str).

    print_level, print_length: limits on the depth of nested logical
    blocks and the number of elements printed per block.

    dispatch: a function of (stream, object, options) used to print
    objects, or None for the default dispatch."""

    __slots__ = ()

    def __new__(cls, right_margin=72, miser_width=40,
                print_base=10, print_radix=False,
                print_pretty=False, print_escape=True,
                print_level=None, print_length=None,
                dispatch=None):
        if right_margin is not None and right_margin <= 0:
            raise ValueError("margin must be positive")
        if not 2 <= print_base <= 36:
            raise ValueError("radix out of range")
        return super(PrinterVars, cls).__new__(cls, right_margin, miser_width,
                                               print_base, print_radix,
                                               print_pretty, print_escape,
                                               print_level, print_length,
                                               dispatch)
