import unittest
from io import StringIO
from charpos import CharposStream, CaseConvertingStream
from printervars import PrinterVars

class CharposStreamTest(unittest.TestCase):
    def testCharpos(self):
        stream = CharposStream(StringIO())
        stream.write("abc")
        self.assertEqual(3, stream.charpos)
        stream.write("de\nf")
        self.assertEqual(1, stream.charpos)
        self.assertEqual(1, stream.line)
        self.assertTrue(stream.fresh_line())
        self.assertFalse(stream.fresh_line())
        self.assertEqual("abcde\nf\n", stream.getvalue())

    def testOptions(self):
        options = PrinterVars(right_margin=20)
        stream = CharposStream(StringIO(), options=options)
        self.assertIs(options, stream.options)
        self.assertIs(options, CharposStream(stream).options)
        self.assertEqual(72, CharposStream(StringIO()).options.right_margin)

class CaseConvertingStreamTest(unittest.TestCase):
    def convert(self, mode, *strings):
        stream = CaseConvertingStream(CharposStream(StringIO()), mode)
        for s in strings:
            stream.write(s)
        return stream.getvalue()

    def testModes(self):
        self.assertEqual("hello world", self.convert("downcase", "Hello World"))
        self.assertEqual("HELLO WORLD", self.convert("upcase", "Hello World"))
        self.assertEqual("Hello World", self.convert("capitalize",
                                                     "hELLO wORLD"))
        self.assertEqual("Hello world", self.convert("capitalize-first",
                                                     "hELLO wORLD"))

    def testAcrossWrites(self):
        self.assertEqual("Don'T Stop", self.convert("capitalize",
                                                    "don'", "t s", "top"))
        self.assertEqual("Foobar baz", self.convert("capitalize-first",
                                                    "foo", "BAR ", "BAZ"))

    def testForwarding(self):
        stream = CaseConvertingStream(CharposStream(StringIO()), "upcase")
        stream.write("abc")
        self.assertEqual(3, stream.charpos)

if __name__ == "__main__":
    unittest.main()
