"""Services — imperative shell orchestrating storage around the pure counter rules."""
