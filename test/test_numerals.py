import unittest
from decimal import Decimal
from numerals import *

class NumeralsTest(unittest.TestCase):
    def testRadixString(self):
        self.assertEqual("0", radix_string(0, 7))
        self.assertEqual("-FF", radix_string(-255, 16))
        self.assertEqual("Z", radix_string(35, 36))
        self.assertRaises(ValueError, radix_string, 10, 37)

    def testCommafy(self):
        self.assertEqual("1,234,567", commafy("1234567", ",", 3))
        self.assertEqual("12.34", commafy("1234", ".", 2))
        self.assertEqual("123", commafy("123", ",", 3))

    def testEnglish(self):
        self.assertEqual("zero", itoc(0))
        self.assertEqual("one hundred twenty-three", itoc(123))
        self.assertEqual("one thousand, two hundred", itoc(1200))
        self.assertEqual("twenty-first", itoo(21))
        self.assertEqual("one hundredth", itoo(100))

    def testFloatParts(self):
        self.assertEqual(("0", 0), float_parts(0.0))
        self.assertEqual(("125", -1), float_parts(0.125))
        self.assertEqual(("15", 16), float_parts(1.5e16))
        self.assertEqual(("1", 2), float_parts(100))
        self.assertEqual(("25", 0), float_parts(Decimal("2.50")))

    def testFixedFloat(self):
        self.assertEqual("3.14", fixed_float(3.14159, d=2))
        self.assertEqual("  3.14", fixed_float(3.14159, w=6, d=2))
        self.assertEqual("314.16", fixed_float(3.14159, d=2, k=2))
        self.assertEqual("*****", fixed_float(123456.0, w=5, d=1,
                                              overflowchar="*"))
        self.assertEqual("12.50", fixed_float(Decimal("12.5"), d=2))

    def testExponentialFloat(self):
        self.assertEqual("1.50E+2", exponential_float(150.0, d=2))
        self.assertEqual("1.0E+0", exponential_float(1.0))

    def testMonetary(self):
        self.assertEqual("001.50", monetary_float(1.5, n=3))
        self.assertEqual("-1.50", monetary_float(-1.5))

if __name__ == "__main__":
    unittest.main()
