"""cliquebeam command-line interface."""
