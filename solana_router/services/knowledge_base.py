"""Built-in documentation passages for conceptual questions."""

from solana_router.constants import DOCS_BASE_URL

DOCUMENTS = (
    {
        "title": "Accounts",
        "url": f"{DOCS_BASE_URL}/core/accounts",
        "content": (
            "All data on Solana is stored in accounts. An account has an address (a 32-byte "
            "public key shown in base58), a lamport balance, an owner program, an executable "
            "flag and a data field. Only the owner program may modify an account's data or "
            "debit its lamports. Wallet accounts are owned by the System Program and hold SOL."
        ),
    },
    {
        "title": "Program Derived Addresses (PDA)",
        "url": f"{DOCS_BASE_URL}/core/pda",
        "content": (
            "A program derived address (PDA) is an address deterministically derived from a "
            "program ID and a set of seeds plus a bump seed. PDAs lie off the ed25519 curve, so "
            "no private key exists for them; only the deriving program can sign for a PDA through "
            "invoke_signed. Programs use PDAs as vaults, pools, metadata records and other state "
            "accounts that they control."
        ),
    },
    {
        "title": "Transactions and signatures",
        "url": f"{DOCS_BASE_URL}/core/transactions",
        "content": (
            "A transaction bundles one or more instructions with the signatures of the required "
            "signers and a recent blockhash. The first signature identifies the transaction and is "
            "an 87 or 88 character base58 string. Transactions are atomic: if any instruction fails, "
            "the whole transaction fails, though the fee is still charged to the fee payer."
        ),
    },
    {
        "title": "Transaction lifecycle",
        "url": f"{DOCS_BASE_URL}/advanced/confirmation",
        "content": (
            "A transaction is sent to an RPC node, forwarded to the current leader, processed in a "
            "slot and then reaches the processed, confirmed and finalized commitment levels. A "
            "transaction whose recent blockhash is older than about 150 blocks expires and must be "
            "re-signed with a fresh blockhash."
        ),
    },
    {
        "title": "Tokens and mints",
        "url": f"{DOCS_BASE_URL}/core/tokens",
        "content": (
            "SPL tokens are managed by the Token Program. A mint account records the total supply, "
            "the number of decimals, an optional mint authority that can create new tokens and an "
            "optional freeze authority. Balances are held in token accounts, usually associated token "
            "accounts derived from the wallet and the mint. An NFT is a mint with supply 1 and 0 decimals."
        ),
    },
    {
        "title": "Programs and loaders",
        "url": f"{DOCS_BASE_URL}/core/programs",
        "content": (
            "Programs are executable accounts that hold compiled code. Programs deployed with the "
            "upgradeable BPF loader can be upgraded by their upgrade authority; programs under the older "
            "loaders are immutable. Programs are stateless and keep their state in separate accounts, "
            "often written in Rust with the Anchor framework."
        ),
    },
    {
        "title": "Rent",
        "url": f"{DOCS_BASE_URL}/core/fees",
        "content": (
            "Accounts must hold a minimum lamport balance proportional to their data size to be rent "
            "exempt. Closing an account returns its rent-exempt lamports to a chosen destination."
        ),
    },
    {
        "title": "Common transaction errors",
        "url": f"{DOCS_BASE_URL}/programs/debugging",
        "content": (
            "Failed instructions report custom program errors as hexadecimal codes such as 0x1, which "
            "for the Token Program means insufficient funds. Other frequent failures are blockhash not "
            "found, insufficient lamports for the fee, exceeding the compute budget and account "
            "ownership mismatches. Program logs in the transaction metadata show which instruction failed."
        ),
    },
)
