from fathom import *

EXAMPLES = r'''
# Run it:
example

# Run it with some arguments:
FOO=bar ZAZ="quoted value" example --name=Carlos -a -s Becker -a

# Run a subcommand with an argument:
example sub --async --name=xyz --async arguments

# Run with a quoted string:
example sub "quoted string"

# Mix and match:
example sub "multi-word quoted string" --name "another quoted string" -a

# Multi-line:
ENV_A=0 ENV_B=0 ENV_C=0 \
  CERT_FILE=/path/to/chain.pem KEY_FILE=/path/to/key.pem \
  example sub "quoted argument"

# Run a subcommand's subcommand with an argument:
example sub another args --async

# Pipe example:
echo "foo" | example > bar.txt
'''


def greet(invocation):
    name = " ".join(filter(None, (invocation.flags["name"], invocation.flags["surname"]))) or "world"
    invocation.stdout.write(f"Hello, {name}{'!' if invocation.flags['async'] else '.'}\n")


example = Command("example [args]", "Short help", "A little program showing off styled help output.", EXAMPLES, run=greet)
example.flag("name", usage="the name")
example.flag("surname", "s", "the surname")
example.flag("async", "a", "async?", False)

sub = example.command("sub", "a sub command")
sub.command("another", "Another sub command")


if __name__ == '__main__':
    main(example, version="v0.0.0")
