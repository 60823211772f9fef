"""pxd: short, grep-able identifiers for notes, tokens, and projects."""
