"""One module per ``bookpub`` subcommand."""
