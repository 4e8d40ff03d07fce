"""
Program wiring tests (dispatch, built-ins, error handling, man pages, completion).

Scope
- Validate argv walking: subcommands, long/short/stacked flags, "--", defaults.
- Validate the built-ins: --version, completion, man, help.
- Validate that errors are rendered on stderr and re-raised unchanged.
- Validate roff output and completion scripts.

Conventions
- Test method names follow CamelCase per project convention.
- Every test builds a fresh tree; execute() installs built-ins into it.
- Output goes to StringIO sinks with the NOTTY profile at a fixed width.
"""
import io
import sys
import unittest
from unittest import TestCase
from unittest.mock import patch

from fathom import *
from fathom.completion import fish
from fathom.manpage import escape, manpage


def simple(**options):
    return Command("simple", "Short help", "Long help", **options)


def example(calls):
    root = Command("example [args]", "Short help", run=calls.append)
    root.flag("name", usage="the name")
    root.flag("surname", "s", "the surname")
    root.flag("async", "a", "async?", False)
    sub = root.command("sub", "a sub command", run=calls.append)
    sub.command("another", "Another sub command")
    return root


class Run:
    """Collects the output of one execute() call."""

    def __init__(self, root, *argv, **options):
        self.stdout = io.StringIO()
        self.stderr = io.StringIO()
        self.result = execute(
            root,
            list(argv),
            stdout=self.stdout,
            stderr=self.stderr,
            profile=ColorProfile.NOTTY,
            width=60,
            **options,
        )

    @property
    def out(self):
        return self.stdout.getvalue()


def failure(test, error, root, *argv, **options):
    stderr = io.StringIO()
    with test.assertRaises(error) as context:
        execute(root, list(argv), stdout=io.StringIO(), stderr=stderr, profile=ColorProfile.NOTTY, width=60, **options)
    return context.exception, stderr.getvalue()


class TestDispatch(TestCase):

    def setUp(self):
        self.calls = []
        self.root = example(self.calls)

    def testRunReceivesInvocation(self):
        Run(self.root, "--name", "Carlos", "-a", "extra")
        invocation, = self.calls
        self.assertIs(invocation.command, self.root)
        self.assertEqual(invocation.args, ("extra",))
        self.assertEqual(invocation.flags["name"], "Carlos")
        self.assertIs(invocation.flags["async"], True)
        self.assertEqual(invocation.flags["surname"], "")

    def testRunResultIsReturned(self):
        root = Command("simple", run=lambda invocation: 42)
        self.assertEqual(Run(root, completions=False, manpage=False).result, 42)

    def testDefaultsAreFilledIn(self):
        Run(self.root)
        self.assertIs(self.calls[0].flags["async"], False)
        self.assertIs(self.calls[0].flags["help"], False)

    def testInlineAndShortValues(self):
        Run(self.root, "--name=Carlos", "-sBecker")
        self.assertEqual((self.calls[0].flags["name"], self.calls[0].flags["surname"]), ("Carlos", "Becker"))

    def testShortValueWithEquals(self):
        Run(self.root, "-s=Becker")
        self.assertEqual(self.calls[0].flags["surname"], "Becker")

    def testStackedShorthands(self):
        Run(self.root, "-as", "Becker")
        self.assertIs(self.calls[0].flags["async"], True)
        self.assertEqual(self.calls[0].flags["surname"], "Becker")

    def testExplicitBooleanValue(self):
        Run(self.root, "--async=false")
        self.assertIs(self.calls[0].flags["async"], False)

    def testExplicitBooleanShorthandValue(self):
        Run(self.root, "-a=false")
        self.assertIs(self.calls[0].flags["async"], False)
        Run(self.root, "-a=t")
        self.assertIs(self.calls[1].flags["async"], True)

    def testStackedShorthandsEndAtBooleanValue(self):
        Run(self.root, "-a=0", "-s", "Becker")
        self.assertEqual((self.calls[0].flags["async"], self.calls[0].flags["surname"]), (False, "Becker"))

    def testTerminatorEndsFlags(self):
        Run(self.root, "--", "--name", "sub")
        self.assertEqual(self.calls[0].args, ("--name", "sub"))

    def testSubcommandIsSelected(self):
        Run(self.root, "sub", "arg")
        self.assertIs(self.calls[0].command, self.root.resolve_child("sub"))
        self.assertEqual(self.calls[0].args, ("arg",))

    def testCommandWithoutRunPrintsHelp(self):
        run = Run(self.root, "sub", "another")
        self.assertIn("example sub another [--flags]", run.out)
        self.assertEqual(self.calls, [])

    def testHelpFlagPrintsHelp(self):
        run = Run(self.root, "--help")
        self.assertIn("  USAGE", run.out)
        self.assertIn("  COMMANDS", run.out)
        self.assertEqual(self.calls, [])

    def testHelpFlagOnSubcommand(self):
        run = Run(self.root, "sub", "-h")
        self.assertIn("example sub [command] [--flags]", run.out)


class TestErrors(TestCase):

    def setUp(self):
        self.calls = []
        self.root = example(self.calls)

    def testUnknownFlag(self):
        error, stderr = failure(self, UnknownFlagError, self.root, "--nope-nope-nope")
        self.assertEqual(str(error), "unknown flag: --nope-nope-nope")
        self.assertIn("  unknown flag: --nope-nope-nope.", stderr)
        self.assertIn("  Try --help for usage.", stderr)

    def testUnknownShorthand(self):
        error, _ = failure(self, UnknownShorthandError, self.root, "-x")
        self.assertEqual(str(error), "unknown shorthand flag: 'x' in -x")

    def testMissingValues(self):
        error, _ = failure(self, FlagValueRequiredError, self.root, "--name")
        self.assertEqual(str(error), "flag needs an argument: --name")
        error, _ = failure(self, FlagValueRequiredError, self.root, "-s")
        self.assertEqual(str(error), "flag needs an argument: 's' in -s")

    def testInvalidBoolean(self):
        failure(self, InvalidArgumentError, self.root, "--async=maybe")
        failure(self, InvalidArgumentError, self.root, "-a=maybe")

    def testUnknownSubcommandOfSubcommand(self):
        root = simple()
        root.command("sub", "a sub command").command("another", "Another sub command")
        error, stderr = failure(self, UnknownCommandError, root, "sub", "bogus")
        self.assertEqual(str(error), 'unknown command "bogus" for "simple sub"')
        self.assertIn("Try --help for usage.", stderr)

    def testRunnableSubcommandAcceptsArguments(self):
        Run(self.root, "sub", "bogus")
        self.assertEqual(self.calls[0].args, ("bogus",))

    def testUnknownCommand(self):
        error, stderr = failure(self, UnknownCommandError, simple(), "nope")
        self.assertEqual(str(error), 'unknown command "nope" for "simple"')
        self.assertIn("ERROR", stderr)

    def testCallbackErrorsAreRenderedAndReraised(self):
        def run(invocation):
            raise RuntimeError("boom")

        error, stderr = failure(self, RuntimeError, Command("simple", run=run), completions=False, manpage=False)
        self.assertEqual(str(error), "boom")
        self.assertIn("  boom.", stderr)
        self.assertNotIn("Try --help", stderr)

    def testCustomHandler(self):
        def handler(console, sheet, error):
            console.print(f"Custom error handler: {error}")

        _, stderr = failure(self, UnknownCommandError, simple(), "nope", handler=handler)
        self.assertEqual(stderr, 'Custom error handler: unknown command "nope" for "simple"\n')


class TestBuiltins(TestCase):

    def testVersion(self):
        run = Run(simple(), "--version", version="v1.2.3", commit="aaabbbccc")
        self.assertEqual(run.out, "simple version v1.2.3 (aaabbbc)\n")

    def testVersionShorthand(self):
        self.assertEqual(Run(simple(), "-v").out, "simple version unknown (built from source)\n")

    def testVersionFromCommand(self):
        self.assertEqual(Run(simple(version="2.0"), "--version").out, "simple version 2.0\n")

    def testWithoutVersion(self):
        error, stderr = failure(self, UnknownFlagError, simple(), "--version", versioned=False)
        self.assertEqual(str(error), "unknown flag: --version")

    def testVersionText(self):
        self.assertEqual(version_text(), UNKNOWN_VERSION)
        self.assertEqual(version_text("v1", "0123456789"), "v1 (0123456)")

    def testInstallIsIdempotent(self):
        root = simple()
        install(root)
        install(root)
        self.assertEqual([child.name for child in root.children], ["completion", "man", "help"])

    def testManIsHidden(self):
        run = Run(simple(), "--help")
        self.assertIn("completion", run.out)
        self.assertNotIn("    man", run.out)

    def testManPrintsRoff(self):
        run = Run(simple(), "man", version="v1.2.3")
        self.assertTrue(run.out.startswith('.TH "SIMPLE" "1" "" "v1.2.3"'))

    def testManHelp(self):
        self.assertIn("simple man [--flags]", Run(simple(), "man", "-h").out)

    def testWithoutManpage(self):
        failure(self, UnknownCommandError, simple(), "man", manpage=False)

    def testCompletionScript(self):
        self.assertIn("complete -F _simple simple", Run(simple(), "completion", "bash").out)

    def testCompletionWithoutShellPrintsHelp(self):
        self.assertIn("simple completion [shell] [--flags]", Run(simple(), "completion").out)

    def testCompletionRejectsUnknownShell(self):
        error, _ = failure(self, InvalidArgumentError, simple(), "completion", "zsh")
        self.assertEqual(str(error), 'invalid argument "zsh" for "simple completion"')

    def testWithoutCompletions(self):
        failure(self, UnknownCommandError, simple(), "completion", completions=False)

    def testHelpCommand(self):
        self.assertIn("simple completion [shell] [--flags]", Run(simple(), "help", "completion").out)

    def testHelpCommandMatchesHelpFlag(self):
        def output(*argv):
            root = Command("example", "Short help")
            root.command("sub", "a sub command " + "word " * 10)
            stdout = io.StringIO()
            execute(
                root,
                list(argv),
                stdout=stdout,
                stderr=io.StringIO(),
                profile=ColorProfile.NOTTY,
                width=40,
                policy=Policy(capitalize=True),
            )
            return stdout.getvalue()

        expected = output("sub", "--help")
        self.assertIn("  A sub command word", expected)
        self.assertTrue(all(len(line) <= 40 for line in expected.splitlines()))
        self.assertEqual(output("help", "sub"), expected)

    def testBareCompletionMatchesHelpFlag(self):
        def output(*argv):
            stdout = io.StringIO()
            execute(simple(), list(argv), stdout=stdout, profile=ColorProfile.NOTTY, width=40, policy=Policy(capitalize=True))
            return stdout.getvalue()

        self.assertEqual(output("completion"), output("completion", "--help"))

    def testHelpCommandRejectsUnknownPath(self):
        failure(self, UnknownCommandError, simple(), "help", "nope")


class TestMain(TestCase):

    def testExitsWithOneOnError(self):
        with patch.object(sys, "argv", ["simple", "--nope"]):
            with self.assertRaises(SystemExit) as context:
                main(simple(), stdout=io.StringIO(), stderr=io.StringIO(), profile=ColorProfile.NOTTY)
        self.assertEqual(context.exception.code, 1)

    def testReturnsResult(self):
        root = Command("simple", run=lambda invocation: invocation.args)
        with patch.object(sys, "argv", ["simple", "a", "b"]):
            result = main(root, stdout=io.StringIO(), completions=False, manpage=False)
        self.assertEqual(result, ("a", "b"))


class TestManpage(TestCase):

    def testEscaping(self):
        self.assertEqual(escape("a-b"), "a\\-b")
        self.assertEqual(escape("a\\b"), "a\\eb")
        self.assertEqual(escape(".dot\n'quote"), "\\&.dot\n\\&'quote")

    def testSections(self):
        root = Command("example", "Short help", "Long help", "example --name x")
        root.flag("name", usage="the name", default="bob")
        root.command("sub", "a sub command").command("another", "Another sub command")
        page = manpage(root, "v1")
        for section in (".SH NAME", ".SH SYNOPSIS", ".SH DESCRIPTION", ".SH OPTIONS", ".SH COMMANDS", ".SH EXAMPLES"):
            self.assertIn(section, page)
        self.assertIn("example \\- Short help", page)
        self.assertIn("\\fB\\-h\\fR, \\fB\\-\\-help\\fR", page)
        self.assertIn("the name (default bob)", page)
        self.assertIn("\\fBsub another\\fR", page)

    def testEmptySectionsAreLeftOut(self):
        page = manpage(Command("bare"))
        self.assertNotIn(".SH COMMANDS", page)
        self.assertNotIn(".SH EXAMPLES", page)
        self.assertNotIn(".SH DESCRIPTION", page)


class TestCompletion(TestCase):

    def testFishScript(self):
        root = Command("example")
        root.flag("name", "n", "the name")
        root.command("sub", "a sub command")
        script = fish(root)
        self.assertIn("complete -c example -l name -s n -r -d 'the name'", script)
        self.assertIn("complete -c example -n '__fish_use_subcommand' -a sub -d 'a sub command'", script)
        self.assertIn("complete -c example -n '__fish_seen_subcommand_from sub' -l help -s h -d 'help for sub'", script)


if __name__ == "__main__":
    unittest.main()
