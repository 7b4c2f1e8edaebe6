"""Command groups registered on the pdfforge CLI."""
