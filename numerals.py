"""Conversions of numbers to strings for the numeric format directives.

Floating-point output never relies on binary rounding: a number is first
decomposed into the shortest string of decimal digits that reads back as
the same value (its repr), and all rounding is done half-up on that string."""

from decimal import Decimal

__all__ = ["radix_string", "commafy", "roman_int", "itoc", "itoo",
           "float_parts", "fixed_float", "exponential_float",
           "general_float", "monetary_float"]

# Radix Control

digits = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"

def convert(n, radix):
    """Yield the digits of the non-negative integer n in the given radix."""
    def le_digits(n, radix):
        while n > 0:
            yield digits[n % radix]
            n //= radix
    if radix < 2 or radix > 36:
        raise ValueError("radix out of range")
    if n == 0:
        return iter("0")
    return reversed(tuple(le_digits(n, radix)))

def radix_string(n, radix):
    """Return the digits of the integer n in the given radix, with a leading
    minus sign if n is negative."""
    sign = "-" if n < 0 else ""
    n = abs(n)
    if radix == 10:
        return sign + "%d" % n
    elif radix == 16:
        return sign + "%X" % n
    elif radix == 8:
        return sign + "%o" % n
    elif radix == 2:
        return sign + format(n, "b")
    else:
        return sign + "".join(convert(n, radix))

def commafy(s, commachar, comma_interval):
    """Add commachars between groups of comma_interval digits."""
    first = len(s) % comma_interval
    a = [s[0:first]] if first > 0 else []
    for i in range(first, len(s), comma_interval):
        a.append(s[i:i + comma_interval])
    return commachar.join(a)

roman_numerals = ["M", 2, "D", 5, "C", 2, "L", 5, "X", 2, "V", 5, "I"]

def roman_int(n, oldstyle=False):
    """Yield the Roman numeral representation of n.  This routine is a
    straightforward translation of the code from section 69 of TeX82, where
    it is prefaced by the following comment:

        Readers who like puzzles might enjoy trying to figure out how
        this tricky code works; therefore no explanation will be given.
        Notice that 1990 yields MCMXC, not MXM.

    The only substantive change to the algorithm is the addition of the
    old-style flag."""
    if n < 1 or n > (4999 if oldstyle else 3999):
        raise ValueError("integer cannot be expressed as Roman numerals")

    # j & k are mysterious indices into roman_numerals;
    # u & v are mysterious numbers
    j = 0; v = 1000
    while True:
        while n >= v:
            yield roman_numerals[j]; n -= v
        if n <= 0: return   # nonpositive input produces no output
        k = j + 2; u = v // roman_numerals[k - 1]
        if roman_numerals[k - 1] == 2:
            k += 2; u //= roman_numerals[k - 1]
        if n + u >= v and not oldstyle:
            yield roman_numerals[k]; n += u
        else:
            j += 2; v //= roman_numerals[j - 1]

# English ordinal & cardinal conversion code contributed by Richard
# M. Kreuter <kreuter@progn.net>.

cardinals = ["zero", "one", "two" , "three", "four",
             "five", "six", "seven", "eight", "nine",
             "ten", "eleven", "twelve", "thirteen", "fourteen",
             "fifteen", "sixteen", "seventeen", "eighteen", "nineteen"]

ordinals = ["zeroth", "first", "second", "third", "fourth",
            "fifth", "sixth", "seventh", "eighth", "ninth",
            "tenth", "eleventh", "twelfth", "thirteenth", "fourteenth",
            "fifteenth", "sixteenth", "seventeenth", "eighteenth", "nineteenth"]

tenstems = ["", "ten", "twent", "thirt", "fourt", "fift",
            "sixt", "sevent", "eight", "ninet"]

ten_cubes = ["", "thousand", "million", "billion", "trillion",
             "quadrillion", "quintillion", "sextillion", "septillion",
             "octillion", "nonillion"]

def itoe(n, ordinal):
    if n < 0:
        s = "negative "
        n = abs(n)
    else:
        s = ""

    if ordinal:
        table = ordinals
        osuff = "th"
        tsuff0 = "ieth"
    else:
        table = cardinals
        osuff = ""
        tsuff0 = "y"
    tsuff1 = "y"
    if n < 1000:
        if n >= 100:
            return s + "%s hundred" % itoc(n // 100) + \
                (osuff if n % 100 == 0 else (" " + itoe(n % 100, ordinal)))
        else:
            if n < 20:
                return s + table[n]
            else:
                ones = n % 10
                return s + tenstems[n // 10] + \
                    (tsuff0 if ones == 0 else (tsuff1 + "-" + table[ones]))

    v = (len(str(n)) - 1) // 3
    u = 1000 ** v
    while v >= 0:
        q = n // u
        if q != 0:
            s += itoe(q, ordinal and n < 1000)
            if v >= len(ten_cubes):
                s += " times ten to the %s power plus" % (itoo(3*v))
            elif ten_cubes[v]:
                s += " " + ten_cubes[v]
            n %= u
            if n == 0:
                if v > 0: s += osuff
            else:
                if n >= 100 and v < len(ten_cubes): s += ","
                s += " "
        v -= 1
        u //= 1000
    return s

def itoo(n):
    return itoe(n, True)

def itoc(n):
    return itoe(n, False)

# Floating-point

def float_parts(x):
    """Decompose the non-negative number x into a string of significant
    decimal digits, with no leading or trailing zeros, and the decimal
    exponent of the first of those digits.  Zero is ("0", 0).

    >>> float_parts(0.125)
    ('125', -1)
    >>> float_parts(1.5e16)
    ('15', 16)"""
    if not isinstance(x, (int, float, Decimal)):
        x = float(x)
    s = (repr(x) if isinstance(x, float) else str(x)).lower()
    exploc = s.find("e")
    dotloc = s.find(".")
    if exploc == -1:
        if dotloc == -1:
            (m, e) = (s, len(s) - 1)
        else:
            (m, e) = (s[:dotloc] + s[dotloc+1:], dotloc - 1)
    else:
        if dotloc == -1:
            (m, e) = (s[:exploc], int(s[exploc+1:]) + exploc - 1)
        else:
            (m, e) = (s[:dotloc] + s[dotloc+1:exploc],
                      int(s[exploc+1:]) + dotloc - 1)
    m1 = m.rstrip("0")
    m2 = m1.lstrip("0")
    if not m2:
        return ("0", 0)
    return (m2, e - (len(m1) - len(m2)))

def inc_s(s):
    """Add one to the decimal digit string s, e.g., "129" -> "130" and
    "99" -> "100"."""
    i = len(s) - 1
    while i >= 0 and s[i] == "9":
        i -= 1
    if i < 0:
        return "1" + "0" * len(s)
    return s[:i] + chr(ord(s[i]) + 1) + "0" * (len(s) - 1 - i)

def round_str(m, e, d, w):
    """Round the digit string m, whose first digit has exponent e, to d
    digits after the decimal point, or if d is None, to fit in w columns.
    Returns the new digits, their exponent, and whether rounding carried
    into a new leading digit (in which case the digit string has been
    truncated by one and the caller must bump the exponent)."""
    if d is None and w is None:
        return (m, e, False)
    length = len(m)
    if w is not None:
        w = max(2, w)
    if d is not None:
        round_pos = e + d + 1
    elif e >= 0:
        round_pos = max(e + 1, w - 1)
    else:
        round_pos = w + e
    (m1, e1) = (m, e)
    if round_pos == 0:
        (m1, e1, round_pos, length) = ("0" + m, e + 1, 1, length + 1)
    if round_pos < 0:
        return ("0", 0, False)
    if length > round_pos:
        result = m1[:round_pos]
        if m1[round_pos] >= "5":
            rounded = inc_s(result)
            expanded = len(rounded) > len(result)
            return (rounded[:-1] if expanded else rounded, e1, expanded)
        return (result, e1, False)
    return (m, e, False)

def expand_fixed(m, e, d):
    if e < 0:
        (m, e) = ("0" * (-e - 1) + m, -1)
    target = e + d + 1 if d is not None else e + 1
    if len(m) < target:
        m += "0" * (target - len(m))
    return m

def insert_decimal(m, e):
    if e < 0:
        return "." + m
    return m[:e + 1] + "." + m[e + 1:]

def get_fixed(m, e, d):
    return insert_decimal(expand_fixed(m, e, d), e)

def is_negative(x, atsign=False):
    """Negative zero counts as negative only when the sign is to be
    printed anyway."""
    if x < 0:
        return True
    return atsign and isinstance(x, float) and str(x).startswith("-")

def fixed_float(x, w=None, d=None, k=0, overflowchar=None, padchar=" ",
                atsign=False):
    """The ~F directive: x scaled by 10^k, with d digits after the decimal
    point, right-justified in a field of w columns."""
    negative = is_negative(x, atsign)
    sign = "-" if negative else "+"
    add_sign = atsign or negative
    (mantissa, exp) = float_parts(abs(x))
    scaled_exp = exp + k
    append_zero = d is None and len(mantissa) - 1 <= scaled_exp
    (rounded, scaled_exp, expanded) = \
        round_str(mantissa, scaled_exp, d,
                  (w - (1 if add_sign else 0)) if w is not None else None)
    fixed = get_fixed(rounded, scaled_exp + 1 if expanded else scaled_exp, d)
    if w is not None and d is not None and d >= 1 and \
            fixed.startswith("0.") and \
            len(fixed) > w - (1 if add_sign else 0):
        fixed = fixed[1:]
    prepend_zero = fixed.startswith(".")
    if w is not None:
        signed_len = len(fixed) + (1 if add_sign else 0)
        prepend_zero = prepend_zero and signed_len < w
        append_zero = append_zero and signed_len < w
        full_len = signed_len + 1 if prepend_zero or append_zero \
                                  else signed_len
        if full_len > w and overflowchar:
            return overflowchar * w
        return padchar * (w - full_len) + \
            (sign if add_sign else "") + \
            ("0" if prepend_zero else "") + fixed + \
            ("0" if append_zero else "")
    return (sign if add_sign else "") + \
        ("0" if prepend_zero else "") + fixed + \
        ("0" if append_zero else "")

def exponential_float(x, w=None, d=None, e=None, k=1, overflowchar=None,
                      padchar=" ", exptchar=None, atsign=False):
    """The ~E directive: k digits before the decimal point (or -k zeros
    after it when k is not positive), d digits after it, and an exponent
    of at least e digits."""
    negative = is_negative(x, atsign)
    sign = ("-" if negative else "+") if atsign or negative else ""
    (mantissa, exp) = float_parts(abs(x))
    while True:
        expt = exp - (k - 1)
        exp_digits = str(abs(expt))
        if e is not None:
            exp_digits = exp_digits.rjust(e, "0")
        exp_str = (exptchar or "E") + ("-" if expt < 0 else "+") + exp_digits

        if d is not None:
            sig = d + 1 if k > 0 else d + k
        elif w is not None:
            sig = w - len(sign) - len(exp_str) - 1 - max(0, -k)
        else:
            sig = None
        digits = mantissa
        if sig is not None:
            sig = max(sig, 1)
            if len(digits) > sig:
                digits = digits[:sig]
                if mantissa[sig] >= "5":
                    digits = inc_s(digits)
                    if len(digits) > sig:
                        # 9.99 -> 10.0: renormalize and start over.
                        (mantissa, exp) = ("1", exp + 1)
                        continue
        break

    if k > 0:
        int_part = digits[:k].ljust(k, "0")
        frac = digits[k:]
        if d is not None:
            frac = frac.ljust(d - k + 1, "0")
    else:
        int_part = ""
        frac = "0" * -k + digits
        if d is not None:
            frac = frac.ljust(d, "0")
    if not frac and d is None and \
            (w is None or
             len(sign) + len(int_part) + 2 + len(exp_str) <= w):
        frac = "0"
    body = int_part + "." + frac

    if w is None:
        return sign + ("" if int_part else "0") + body + exp_str
    width = len(sign) + len(body) + len(exp_str)
    if not int_part and width < w:
        body = "0" + body
        width += 1
    if (width > w or (e is not None and len(exp_digits) > e)) \
            and overflowchar:
        return overflowchar * w
    return padchar * (w - width) + sign + body + exp_str

def general_float(x, w=None, d=None, e=None, k=1, overflowchar=None,
                  padchar=" ", exptchar=None, atsign=False):
    """The ~G directive: fixed-format if the number's magnitude allows
    printing it with d significant digits, exponential otherwise."""
    (mantissa, exp) = float_parts(abs(x))
    n = 0 if mantissa == "0" else exp + 1
    ee = e + 2 if e is not None else 4
    ww = w - ee if w is not None else None
    if d is None:
        d = max(len(mantissa), min(n, 7))
    dd = d - n
    if 0 <= dd <= d:
        return fixed_float(x, ww, dd, 0, overflowchar, padchar, atsign) + \
            " " * ee
    return exponential_float(x, w, d, e, k, overflowchar, padchar, exptchar,
                             atsign)

def monetary_float(x, d=2, n=1, w=0, padchar=" ", colon=False, atsign=False):
    """The ~$ directive: d digits after the point, at least n before it,
    padded on the left to w columns.  With colon, the sign precedes the
    padding."""
    negative = is_negative(x, atsign)
    add_sign = atsign or negative
    sign = ("-" if negative else "+") if add_sign else ""
    (mantissa, exp) = float_parts(abs(x))
    (rounded, exp, expanded) = round_str(mantissa, exp, d, None)
    fixed = get_fixed(rounded, exp + 1 if expanded else exp, d)
    full = "0" * (n - fixed.index(".")) + fixed
    pad = padchar * (w - len(full) - len(sign))
    return sign + pad + full if colon else pad + sign + full
