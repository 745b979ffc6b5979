"""toolbench subcommands."""
