"""GraphQL schema served at ``/graphql``."""
