"""Host adapters binding the session to concrete UI toolkits."""
