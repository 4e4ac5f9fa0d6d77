import unittest
from collections import deque
from io import StringIO
from format import format
from prettyprinter import *
from prettyprinter import Text
from printervars import PrinterVars

class PrettyPrinterTest(unittest.TestCase):
    roads = ["Elm", "Cottonwood"]
    town = ["Boston"]

    def ppEquals(self, result, obj, *args, **kwargs):
        stringstream = StringIO()
        pp = PrettyPrinter(stringstream, *args, **kwargs)
        pp.pprint(obj)
        pp.close()
        self.assertEqual(result, stringstream.getvalue())
        stringstream.close()

    def ppFormatEquals(self, result, width, control, *args, options=None):
        stringstream = StringIO()
        pp = PrettyPrinter(stream=stringstream, width=width,
                           options=options or PrinterVars(miser_width=None))
        format(pp, control, *args)
        pp.close()
        self.assertEqual(result, stringstream.getvalue())
        stringstream.close()

    def testLogicalBlock(self):
        control = "+ ~<Roads ~<~A, ~:_~A~:> ~:_ Town ~<~A~:>~:> +"

        self.ppFormatEquals("""\
+ Roads Elm, Cottonwood  Town Boston +""", 50, control, [self.roads, self.town])
        self.ppFormatEquals("""\
+ Roads Elm, Cottonwood
   Town Boston +""", 25, control, [self.roads, self.town])
        self.ppFormatEquals("""\
+ Roads Elm,
        Cottonwood
   Town Boston +""", 21, control, [self.roads, self.town])

    def testPerLinePrefix(self):
        control = "~<;;; ~@;Roads ~<= ~@;~A, ~:_~A~:> ~:_ Town ~<~A~:>~:>"

        self.ppFormatEquals("""\
;;; Roads = Elm, Cottonwood  Town Boston""",
                            50, control, [self.roads, self.town])
        self.ppFormatEquals("""\
;;; Roads = Elm,
;;;       = Cottonwood
;;;  Town Boston""", 25, control, [self.roads, self.town])

        # Per-line prefixes should obey a stack discipline.
        self.ppFormatEquals("""\
* abc
* + 123
* + 456
* + 789
* def""", None, "~<* ~@;~A~:@_~<+ ~@;~@{~A~^~:@_~}~:>~:@_~A~:>",
                ("abc", (123, 456, 789), "def"))

    def testIndentation(self):
        control = "~<(~;~A ~:I~A ~:_~A ~1I~_~A~;)~:>"
        defun = ["defun", "prod", "(x y)", "(* x y)"]

        self.ppFormatEquals("""\
(defun prod (x y) (* x y))""", 50, control, defun)
        self.ppFormatEquals("""\
(defun prod (x y)
  (* x y))""", 25, control, defun)
        self.ppFormatEquals("""\
(defun prod
       (x y)
  (* x y))""", 15, control, defun)
        self.ppFormatEquals("""\
;;; (defun prod
;;;        (x y)
;;;   (* x y))""", 15, "~<;;; ~@;~@?~:>", [control, defun])

    def testIndentHoldsWhiteSpace(self):
        self.ppFormatEquals("abc\n def", None, "~<~A ~1I~:@_~A~:>",
                            ["abc", "def"])
        self.ppFormatEquals("abc\n    def", None, "~<~A ~:I~:@_~A~:>",
                            ["abc", "def"])
        self.ppFormatEquals("(abc\n  def)", 6, "~<(~;~A ~1I~_~A~;)~:>",
                            ["abc", "def"])

    def testMiserMode(self):
        control = "xxxxxxxxxx~<(~;~A ~@_~A ~@_~A~;)~:>"
        words = ["aaaaaaa", "bbbbbbb", "ccccccc"]

        self.ppFormatEquals("""\
xxxxxxxxxx(aaaaaaa
           bbbbbbb
           ccccccc)""", 30, control, words,
                            options=PrinterVars(miser_width=25))
        self.ppFormatEquals("""\
xxxxxxxxxx(aaaaaaa bbbbbbb ccccccc)""", 30, control, words)

    def testBlockCallback(self):
        events = []
        pp = PrettyPrinter(StringIO(), block_callback=events.append)
        pp.begin()
        pp.write("a")
        pp.end()
        pp.close()
        self.assertEqual(["start", "end"], events)

        events = []
        stringstream = StringIO()
        pp = PrettyPrinter(stringstream, width=10,
                           block_callback=events.append)
        format(pp, "~<~A ~_~<~A~:>~:>", ["aaaaaa", ["bbbbbb"]])
        pp.close()
        self.assertEqual("aaaaaa\nbbbbbb", stringstream.getvalue())
        self.assertEqual(["start", "start", "end", "end"], events)

    def testLineWrap(self):
        stringstream = StringIO()
        pp = PrettyPrinter(stringstream, width=10)
        pp.begin()
        pp.write("aaaaaa")
        pp.newline(LINEAR)
        pp.write("bbbbbb")
        pp.end()
        pp.close()
        self.assertEqual("aaaaaa\nbbbbbb", stringstream.getvalue())

    def testLiteralNewline(self):
        stringstream = StringIO()
        pp = PrettyPrinter(stringstream, width=40)
        with pp.logical_block(per_line_prefix="> "):
            pp.write("one\ntwo")
        pp.close()
        self.assertEqual("> one\n> two", stringstream.getvalue())

    def testTokensFit(self):
        pp = PrettyPrinter(StringIO(), width=10)
        self.assertTrue(pp.tokens_fit([]))
        self.assertTrue(pp.tokens_fit([Text("abc", None, 0, 9)]))
        self.assertFalse(pp.tokens_fit([Text("abc", None, 0, 10)]))
        pp.max_column = None
        self.assertTrue(pp.tokens_fit([Text("abc", None, 0, 1000)]))

    def testBadWidth(self):
        self.assertRaises(ValueError, PrettyPrinter, StringIO(), 0)
        self.assertRaises(ValueError, PrinterVars, right_margin=-1)
        self.assertRaises(ValueError, PrinterVars, print_base=37)

    def testCharpos(self):
        stringstream = StringIO()
        pp = PrettyPrinter(stringstream, width=20)
        pp.write("abc  ")
        self.assertEqual(5, pp.charpos)
        self.assertTrue(pp.fresh_line())
        self.assertFalse(pp.fresh_line())
        pp.close()
        self.assertEqual("abc  \n", stringstream.getvalue())

    def testPrintBase(self):
        self.ppEquals("FF", 255, options=PrinterVars(print_base=16))
        self.ppEquals("0xFF", 255,
                      options=PrinterVars(print_base=16, print_radix=True))
        self.ppEquals("-#3r12", -5,
                      options=PrinterVars(print_base=3, print_radix=True))

    def testPformat(self):
        self.assertEqual("[1, 'a', (2,)]", pformat([1, "a", (2,)]))
        self.assertEqual("[1, a]", pformat([1, "a"], print_escape=False))
        self.assertEqual("deque([1, 2])",
                         pformat(deque([1, 2])))

    def testPprint(self):
        stringstream = StringIO()
        pprint(list(range(30)), stringstream, width=40, miser_width=None)
        self.assertEqual("""\
[0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11,
 12, 13, 14, 15, 16, 17, 18, 19, 20,
 21, 22, 23, 24, 25, 26, 27, 28, 29]
""", stringstream.getvalue())

    def testPrintLevel(self):
        levels = ["#",
                  "(1, #)",
                  "(1, (2, #))",
                  "(1, (2, (3, #)))",
                  "(1, (2, (3, (4, #))))",
                  "(1, (2, (3, (4, (5, #)))))",
                  "(1, (2, (3, (4, (5, (6,))))))",
                  "(1, (2, (3, (4, (5, (6,))))))"]
        a = (1, (2, (3, (4, (5, (6,))))))
        for i in range(8):
            self.ppEquals(levels[i], a, options=PrinterVars(print_level=i))

    def testPrintLength(self):
        lengths = ["(...)",
                   "(1, ...)",
                   "(1, 2, ...)",
                   "(1, 2, 3, ...)",
                   "(1, 2, 3, 4, ...)",
                   "(1, 2, 3, 4, 5, ...)",
                   "(1, 2, 3, 4, 5, 6)",
                   "(1, 2, 3, 4, 5, 6)"]
        a = (1, 2, 3, 4, 5, 6)
        for i in range(7):
            self.ppEquals(lengths[i], a, options=PrinterVars(print_length=i))

    def testPrintLevelLength(self):
        levelLengths = {
            (0, 1): "#",
            (1, 1): "(if ...)",
            (1, 2): "(if # ...)",
            (1, 3): "(if # # ...)",
            (1, 4): "(if # # #)",
            (2, 1): "(if ...)",
            (2, 2): "(if (member x ...) ...)",
            (2, 3): "(if (member x y) (+ # 3) ...)",
            (3, 2): "(if (member x ...) ...)",
            (3, 3): "(if (member x y) (+ (car x) 3) ...)",
            (3, 4): "(if (member x y) (+ (car x) 3) (foo (a b c d ...)))"
        }
        sexp = ("if", ("member", "x", "y"), ("+", ("car", "x"), 3),
                ("foo", ("a", "b", "c", "d", "Baz")))
        for (level, length) in [(0, 1), (1, 2), (1, 2), (1, 3), (1, 4),
                                (2, 1), (2, 2), (2, 3), (3, 2), (3, 3), (3, 4)]:
            options = PrinterVars(print_pretty=True, print_escape=False,
                                  print_level=level, print_length=length)
            s = format(None, "~W", sexp, options=options)
            self.assertEqual(levelLengths[(level, length)],
                             s.replace(",", ""))

if __name__ == "__main__":
    unittest.main()
