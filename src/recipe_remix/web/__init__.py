"""Recipe Remix - Web API."""
