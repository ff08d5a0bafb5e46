"""Host package manager installers."""
