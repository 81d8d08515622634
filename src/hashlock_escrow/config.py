"""Hash-locked escrow configuration constants.

Layout sizes and seeds must stay aligned with the deployed program: a
mismatch changes record addresses and breaks existing deposits.
"""

import hashlib

# Integer bounds
U8_MAX = (1 << 8) - 1
U32_MAX = (1 << 32) - 1
U64_MAX = (1 << 64) - 1

# Units
LAMPORTS_PER_SOL = 1_000_000_000

# Hashing
HASH_SIZE = 32
PUBKEY_SIZE = 32
DISCRIMINATOR_SIZE = 8

# Escrow record layout
DEPOSIT_SEED = b"deposit"
RECORD_ACCOUNT_NAME = "PrivateDeposit"  # account discriminator name
RECORD_DATA_SIZE = PUBKEY_SIZE + HASH_SIZE + 8 + 1 + 1  # 74
RECORD_SPACE = DISCRIMINATOR_SIZE + RECORD_DATA_SIZE  # 82
DEPOSITOR_OFFSET = DISCRIMINATOR_SIZE

# Instruction names (discriminator = sha256("global:<name>")[:8])
IX_CREATE_PRIVATE_DEPOSIT = "create_private_deposit"
IX_CLAIM_DEPOSIT = "claim_deposit"

# Rent (rent-exempt minimum = (overhead + size) * per_byte_year * threshold)
LAMPORTS_PER_BYTE_YEAR = 3480
EXEMPTION_THRESHOLD_YEARS = 2
ACCOUNT_STORAGE_OVERHEAD = 128

# Program-derived addresses
MAX_SEED_LEN = 32
MAX_SEEDS = 16
PDA_MARKER = b"ProgramDerivedAddress"
SYSTEM_PROGRAM_ID = bytes(32)
PROGRAM_ID = hashlib.sha256(b"hashlock-escrow:program").digest()
