"""Personal task board backed by a spreadsheet web-app store."""
