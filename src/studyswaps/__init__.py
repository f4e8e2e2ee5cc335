"""StudySwaps client-side auth: OAuth state, CSRF tokens and sessions."""
