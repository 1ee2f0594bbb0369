"""Language server for popvars templates."""
