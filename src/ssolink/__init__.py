"""Discord sign-in with durable, reversible account linking."""
