"""Spreadsheet bulk import, export and sync tooling for exam-preparation content."""
