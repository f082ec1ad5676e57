"""HTTP API for the Solana query router."""
