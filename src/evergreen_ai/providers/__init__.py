"""Provider request building, transport, parsing and retry."""
