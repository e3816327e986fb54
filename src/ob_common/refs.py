"""External-facing transaction references.

Format: TXN_<epoch ms>_<10 hex chars>. Uniqueness is enforced by the
transactions.transaction_ref UNIQUE constraint; the random suffix only has
to make collisions within one millisecond practically impossible.
"""

import time
import uuid


def new_transaction_ref() -> str:
    return f"TXN_{int(time.time() * 1000)}_{uuid.uuid4().hex[:10]}"
