"""Internal helpers shared by sheetmap modules."""
