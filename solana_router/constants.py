"""Constants for the Solana query router."""

from types import MappingProxyType

# Program IDs
SYSTEM_PROGRAM_ID = "11111111111111111111111111111111"
TOKEN_PROGRAM_ID = "TokenkegQfeZyiNwAJbNbGKPFXCWuBvf9Ss623VQ5DA"
TOKEN_2022_PROGRAM_ID = "TokenzQdBNbLqP5VEhdkAS6EPFLC1PHnBqCXEpPxuEb"
ASSOCIATED_TOKEN_PROGRAM_ID = "ATokenGPvbdGVxr1b2hvZbsiqW5xWH25efTNsLJA8knL"
METADATA_PROGRAM_ID = "metaqbxxUerdq28cj1RbAWkYQm3ybzjb6a8bt518x1s"
STAKE_PROGRAM_ID = "Stake11111111111111111111111111111111111111"
VOTE_PROGRAM_ID = "Vote111111111111111111111111111111111111111"

# Loaders
BPF_LOADER_UPGRADEABLE_ID = "BPFLoaderUpgradeab1e11111111111111111111111"
BPF_LOADER_2_ID = "BPFLoader2111111111111111111111111111111111"
BPF_LOADER_1_ID = "BPFLoader1111111111111111111111111111111111"
NATIVE_LOADER_ID = "NativeLoader1111111111111111111111111111111"

# Token mints
USDC_MINT = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"

LAMPORTS_PER_SOL = 1_000_000_000

# Address length bands
PUBKEY_MIN_LENGTH = 32
PUBKEY_MAX_LENGTH = 44
SIGNATURE_MIN_LENGTH = 87
SIGNATURE_MAX_LENGTH = 88

# SPL token account layouts
MINT_ACCOUNT_SIZE = 82
TOKEN_ACCOUNT_SIZE = 165
MINT_SUPPLY_OFFSET = 36
MINT_DECIMALS_OFFSET = 44
# Token-2022 extension accounts carry the account type right after the base layout
TOKEN_2022_ACCOUNT_TYPE_OFFSET = 165
TOKEN_2022_MINT_TYPE = 1
TOKEN_2022_ACCOUNT_TYPE = 2

TOKEN_PROGRAM_IDS = frozenset({TOKEN_PROGRAM_ID, TOKEN_2022_PROGRAM_ID})

# Well-known executable programs, keyed by address
KNOWN_PROGRAMS = MappingProxyType({
    # Core
    SYSTEM_PROGRAM_ID: "System Program",
    STAKE_PROGRAM_ID: "Stake Program",
    VOTE_PROGRAM_ID: "Vote Program",
    "ComputeBudget111111111111111111111111111111": "Compute Budget Program",
    "AddressLookupTab1e1111111111111111111111111": "Address Lookup Table Program",
    BPF_LOADER_UPGRADEABLE_ID: "BPF Upgradeable Loader",
    BPF_LOADER_2_ID: "BPF Loader v2",
    BPF_LOADER_1_ID: "BPF Loader v1",
    NATIVE_LOADER_ID: "Native Loader",

    # Tokens
    TOKEN_PROGRAM_ID: "SPL Token Program",
    TOKEN_2022_PROGRAM_ID: "Token-2022 Program",
    ASSOCIATED_TOKEN_PROGRAM_ID: "Associated Token Program",
    "Memo1UhkJRfHyvLMcVucJwxXeuD728EqVDDwQDxFMNo": "Memo Program",
    "MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr": "Memo Program v2",

    # DEX and aggregators
    "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4": "Jupiter Aggregator v6",
    "JUP4Fb2cqiRUcaTHdrPC8h2gNsA2ETXiPDD33WcGuJB": "Jupiter Aggregator v4",
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8": "Raydium AMM v4",
    "CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK": "Raydium CLMM",
    "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc": "Orca Whirlpool",
    "9W959DqEETiGZocYWCQPaJ6sBmUzgfxXfqGeTEdp3aQP": "Orca Token Swap v2",
    "DjVE6JNiYqPL2QXyCUUh8rNjHrbz9hXHNYt99MQ59qw1": "Orca Token Swap",
    "PhoeNiX1VVuPn7QnvLPzewrhHureq4oAh7QTBPhZMZg": "Phoenix",

    # NFTs
    METADATA_PROGRAM_ID: "Metaplex Token Metadata",
    "cndy3Z4yapfJBmL3ShUp5exZKqR3z33thTzeNMm2gRZ": "Candy Machine v2",
    "CndyV3LdqHUfDLmE5naZjVN8rBZz4tqhdefbAnjHG3JR": "Candy Machine v3",

    # Lending
    "So1endDq2YkqhipRh3WViPa8hdiSpxWy6z3Z6tMCpAo": "Solend",
    "LendZqTs8gn5CTSJU1jWKhKuVpjJGom45nnwPb2AMTi": "Port Finance",
    "MarBmsSgKXdrN1egZf5sqe1TMai9K1rChYNDJgjq7aD": "MarginFi",

    # Other
    "namesLPneVptA9Z5rqUDD9tMTWEJwofgaYwp8cawRkX": "Solana Name Service",
    "SW1TCH7qEPTdLsDHRgPuMQjbQxKdH2aBStViMFnt64f": "Switchboard",
})

# Owners whose data accounts are reported as program-derived
KNOWN_OWNER_PROGRAMS = MappingProxyType({
    METADATA_PROGRAM_ID: "Metaplex",
    "JUP6LkbZbjS1jKKwapdHNy74zcZ3tLUZoi5QNyVTaV4": "Jupiter",
    "whirLbMiicVdio4qvUfM5KAg6Ct8VwpYzGff3uctyCc": "Orca",
    "675kPX9MHTjS2zt1qfr1NYHuzeLXfQM9H24wFSUt1Mp8": "Raydium",
    "CAMMCzo5YL8w4VFF8KVHrK22GGUsp5VTaW7grrKgrWqK": "Raydium",
    "So1endDq2YkqhipRh3WViPa8hdiSpxWy6z3Z6tMCpAo": "Solend",
    "MarBmsSgKXdrN1egZf5sqe1TMai9K1rChYNDJgjq7aD": "MarginFi",
    STAKE_PROGRAM_ID: "Stake Program",
    VOTE_PROGRAM_ID: "Vote Program",
    ASSOCIATED_TOKEN_PROGRAM_ID: "Associated Token Program",
    "namesLPneVptA9Z5rqUDD9tMTWEJwofgaYwp8cawRkX": "Solana Name Service",
    BPF_LOADER_UPGRADEABLE_ID: "BPF Loader",
    BPF_LOADER_2_ID: "BPF Loader v2",
})

# Loader ownership of executable accounts: (label, upgradeable)
PROGRAM_LOADERS = MappingProxyType({
    BPF_LOADER_UPGRADEABLE_ID: ("Upgradeable BPF Program", True),
    BPF_LOADER_2_ID: ("BPF Program v2", False),
    BPF_LOADER_1_ID: ("BPF Program v1", False),
    NATIVE_LOADER_ID: ("Native Program", False),
})

# Name fragments that hint at a program-derived address, with their confidence
PDA_NAME_PATTERNS = (
    ("metadata", 0.8),
    ("vault", 0.7),
    ("pool", 0.6),
)
OFF_CURVE_CONFIDENCE = 0.5

# Default public RPC endpoints, tried in order
DEFAULT_RPC_ENDPOINTS = (
    "https://rpc.ankr.com/solana",
    "https://solana-api.projectserum.com",
    "https://api.mainnet-beta.solana.com",
    "https://solana-mainnet.public.blastapi.io",
)

DEXSCREENER_API_URL = "https://api.dexscreener.com/latest/dex"
DOCS_BASE_URL = "https://solana.com/docs"
