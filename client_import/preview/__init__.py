"""Preview actions and conflict decisions for normalized rows."""
