"""Network clients: endpoint failover, Solana JSON-RPC, market data and model service."""
