# This file is meant to be used for creating pytest fixtures.
# It's a bit of a hack, but we can put global initialization here.

# Run the tests with the built-in defaults rather than with whatever
# configuration file is installed on the machine. This must happen
# before grit is imported for the first time.
import os
os.environ["GRIT_CONFIG"] = os.path.join(
    os.path.dirname(os.path.abspath(__file__)), "no-such-grit.toml")
