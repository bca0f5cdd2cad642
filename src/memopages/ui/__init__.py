"""Qt widgets for the memo window."""
