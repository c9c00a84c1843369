"""NFC wallet onboarding backend."""
