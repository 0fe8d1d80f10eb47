"""Runtime plumbing shared by every gitopsctl command."""
