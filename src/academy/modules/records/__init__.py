"""Records module - students, fee receipts and attendance of one institute."""
