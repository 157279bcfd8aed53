"""
Pricing configuration backup app.

This app provides versioned snapshots of the pricing configuration data:
- Once-per-day automatic snapshots triggered by pricing changes
- A separate manual snapshot slot per day (replacement requires confirmation)
- Retention measured in distinct change-days (oldest days evicted first)
- Destructive full restoration of the live configuration stores
- Metadata-only listing and aggregate health statistics
"""
