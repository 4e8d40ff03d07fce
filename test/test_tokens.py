"""
Example tokenizer tests (classification, quote state, continuation lines).

Scope
- Validate program/subcommand/flag/value classification against a command tree.
- Validate quote tracking across words and across continuation lines.
- Validate that the tokens of a line always reproduce its words.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Command, tokenize, tokenize_block, TokenKind).
"""
import unittest
from unittest import TestCase

from fathom import Command
from fathom.tokens import *

P, S, F, V, Q, C, K, A = (
    TokenKind.PROGRAM,
    TokenKind.SUBCOMMAND,
    TokenKind.FLAG,
    TokenKind.FLAG_VALUE,
    TokenKind.QUOTED,
    TokenKind.COMMENT,
    TokenKind.CONTINUATION,
    TokenKind.ARGUMENT,
)


def tree():
    root = Command("example [args]", "Short help")
    root.flag("name", usage="the name")
    root.flag("surname", "s", "the surname")
    root.flag("async", "a", "async?", False)
    root.command("sub", "a sub command").command("another", "Another sub command")
    return root


def kinds(line, resolver=None):
    tokens, _ = tokenize(line, TokenizerState(), resolver)
    return [token.kind for token in tokens]


def rebuild(tokens):
    words = []
    for token in tokens:
        if token.glued and words:
            words[-1] += token.text
        else:
            words.append(token.text)
    return " ".join(words)


class TestTokenizer(TestCase):
    """Classification of single example lines."""

    def setUp(self):
        self.root = tree()

    def testQuotedStringsKeepQuoteState(self):
        line = 'example sub "multi-word quoted string" --name "another quoted string" -a'
        tokens, state = tokenize(line, TokenizerState(), self.root)
        self.assertEqual([token.kind for token in tokens], [P, S, Q, Q, Q, F, Q, Q, Q, F])
        self.assertFalse(state.inside_quote)

    def testValueFlagBindsNextWord(self):
        self.assertEqual(kinds("example --name Carlos", self.root), [P, F, V])

    def testBooleanFlagDoesNotBindNextWord(self):
        self.assertEqual(kinds("example -a Carlos", self.root), [P, F, A])

    def testShorthandValueFlagBindsNextWord(self):
        self.assertEqual(kinds("example -s Becker -a", self.root), [P, F, V, F])

    def testInlineValueIsGluedArgument(self):
        tokens, _ = tokenize("example --name=Carlos", TokenizerState(), self.root)
        self.assertEqual([(token.text, token.kind, token.glued) for token in tokens], [
            ("example", P, False),
            ("--name=", F, False),
            ("Carlos", A, True),
        ])

    def testEnvironmentAssignmentsBeforeProgram(self):
        line = 'FOO=bar ZAZ="quoted value" example --name=Carlos -a -s Becker -a'
        tokens, _ = tokenize(line, TokenizerState(), self.root)
        self.assertEqual([token.text for token in tokens], [
            "FOO=", "bar", "ZAZ=", '"quoted', 'value"', "example", "--name=", "Carlos", "-a", "-s", "Becker", "-a",
        ])
        self.assertEqual([token.kind for token in tokens], [F, V, F, Q, Q, P, F, A, F, F, V, F])

    def testSubcommandCursorDescends(self):
        self.assertEqual(kinds("example sub another args --async", self.root), [P, S, S, A, F])

    def testGrandchildIsNotResolvedFromRoot(self):
        self.assertEqual(kinds("example another", self.root), [P, A])

    def testRootFlagsResolveFromSubcommand(self):
        self.assertEqual(kinds("example sub --name xyz", self.root), [P, S, F, V])

    def testUnknownFlagDoesNotBind(self):
        self.assertEqual(kinds("example --nope value", self.root), [P, F, A])

    def testProgramNameOnlyOnce(self):
        self.assertEqual(kinds("example example", self.root), [P, A])

    def testProgramAfterPipe(self):
        self.assertEqual(kinds('echo "foo" | example > bar.txt', self.root), [A, Q, A, P, A, A])

    def testCommentLine(self):
        tokens, state = tokenize("# Run it:", TokenizerState(), self.root)
        self.assertEqual(tokens, [Token("# Run it:", C)])
        self.assertEqual(state, TokenizerState())

    def testWithoutResolver(self):
        self.assertEqual(kinds("example sub --name x"), [A, A, F, A])

    def testUnterminatedQuoteStaysOpen(self):
        tokens, state = tokenize('example "never closed', TokenizerState(), self.root)
        self.assertEqual([token.kind for token in tokens], [P, Q, Q])
        self.assertTrue(state.inside_quote)

    def testEscapedQuoteDoesNotClose(self):
        tokens, state = tokenize('example "say \\"hi\\" now"', TokenizerState(), self.root)
        self.assertEqual([token.kind for token in tokens], [P, Q, Q, Q])
        self.assertFalse(state.inside_quote)

    def testEscapedBackslashBeforeQuoteCloses(self):
        tokens, state = tokenize('example "ends with \\\\" --name x', TokenizerState(), self.root)
        self.assertEqual([token.kind for token in tokens], [P, Q, Q, Q, F, V])
        self.assertFalse(state.inside_quote)

    def testPendingValueWinsOverSubcommand(self):
        self.assertEqual(kinds("example --name sub", self.root), [P, F, V])
        self.assertEqual(kinds("example -s sub another", self.root), [P, F, V, A])

    def testTokensReproduceWords(self):
        for line in (
                'FOO=bar ZAZ="quoted value" example --name=Carlos -a -s Becker -a',
                'example sub "multi-word quoted string" --name "another quoted string" -a',
                "example 2>&1 1>/dev/null",
                "foo || example",
        ):
            with self.subTest(line=line):
                tokens, _ = tokenize(line, TokenizerState(), self.root)
                self.assertEqual(rebuild(tokens), line)


class TestTokenizeBlock(TestCase):
    """Multi-line example blocks."""

    def setUp(self):
        self.root = tree()

    def testContinuationLines(self):
        block = (
            "ENV_A=0 ENV_B=0 ENV_C=0 \\\n"
            "  CERT_FILE=/path/to/chain.pem KEY_FILE=/path/to/key.pem \\\n"
            '  example sub "quoted argument"\n'
        )
        lines = tokenize_block(block, self.root)
        self.assertEqual(len(lines), 3)
        self.assertEqual([token.kind for token in lines[0][1]], [F, V, F, V, F, V, K])
        self.assertEqual([token.kind for token in lines[1][1]], [F, V, F, V, K])
        self.assertEqual([token.kind for token in lines[2][1]], [P, S, Q, Q])
        self.assertEqual(lines[2][0], 'example sub "quoted argument"')

    def testQuoteSurvivesContinuation(self):
        lines = tokenize_block('example "open \\\nstill" closed', self.root)
        self.assertEqual([token.kind for token in lines[1][1]], [Q, A])

    def testQuoteResetsWithoutContinuation(self):
        lines = tokenize_block('example "open\nnext line', self.root)
        self.assertEqual([token.kind for token in lines[1][1]], [A, A])

    def testBlankLinesAreTrimmedAtTheEdges(self):
        lines = tokenize_block("\n\n# comment\n\nexample\n\n", self.root)
        self.assertEqual([line for line, _ in lines], ["# comment", "", "example"])
        self.assertEqual(lines[1][1], [])
        self.assertEqual([token.kind for token in lines[2][1]], [P])

    def testEmptyBlock(self):
        self.assertEqual(tokenize_block("\n   \n", self.root), [])


if __name__ == "__main__":
    unittest.main()
