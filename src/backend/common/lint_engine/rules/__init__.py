from .anchor import ANCHOR_FRESHNESS, ANCHOR_SOURCE_REGISTRY
from .attestation import (
    DEPLOYMENT_PRODUCTION_TESTED,
    DOCUMENTATION_COMPREHENSIVE,
    PROOF_SYSTEM_EXTERNAL_AUDIT,
)
from .operators import (
    PROPOSER_FAILOVER_DEFINED,
    PROPOSER_LIVENESS,
    SEQUENCER_FAILOVER_DEFINED,
    SEQUENCER_FORCE_INCLUSION,
    SEQUENCER_LIVENESS,
    SEQUENCER_ROTATION_POLICY,
)
from .oracle import (
    ORACLE_BACKUP_CONFIGURED,
    ORACLE_DISTINCT_SOURCES,
    ORACLE_FRESHNESS_BOUND,
    ORACLE_STALENESS,
)
from .parameters import DOS_BLOCK_GAS_LIMIT, DOS_TX_RATE_LIMIT, FINALITY_CONFIRMATION_DEPTH
from .upgrade import (
    ACCESS_ADMIN_MULTISIG,
    UPGRADE_EXIT_WINDOW,
    UPGRADE_EXIT_WINDOW_COVERS_WITHDRAWAL,
    UPGRADE_PENDING_ACTIVATION,
)
from .withdrawal import (
    EMERGENCY_MODE_ACTIVE,
    WITHDRAWAL_DELAY_BOUND,
    WITHDRAWAL_ESCAPE_HATCH,
    WITHDRAWAL_LIQUIDITY,
)

__all__ = [
    "ANCHOR_FRESHNESS",
    "ANCHOR_SOURCE_REGISTRY",
    "UPGRADE_EXIT_WINDOW",
    "UPGRADE_EXIT_WINDOW_COVERS_WITHDRAWAL",
    "UPGRADE_PENDING_ACTIVATION",
    "ACCESS_ADMIN_MULTISIG",
    "SEQUENCER_FAILOVER_DEFINED",
    "SEQUENCER_LIVENESS",
    "SEQUENCER_ROTATION_POLICY",
    "SEQUENCER_FORCE_INCLUSION",
    "PROPOSER_FAILOVER_DEFINED",
    "PROPOSER_LIVENESS",
    "WITHDRAWAL_DELAY_BOUND",
    "WITHDRAWAL_LIQUIDITY",
    "WITHDRAWAL_ESCAPE_HATCH",
    "EMERGENCY_MODE_ACTIVE",
    "ORACLE_BACKUP_CONFIGURED",
    "ORACLE_DISTINCT_SOURCES",
    "ORACLE_FRESHNESS_BOUND",
    "ORACLE_STALENESS",
    "DOS_BLOCK_GAS_LIMIT",
    "DOS_TX_RATE_LIMIT",
    "FINALITY_CONFIRMATION_DEPTH",
    "DEPLOYMENT_PRODUCTION_TESTED",
    "DOCUMENTATION_COMPREHENSIVE",
    "PROOF_SYSTEM_EXTERNAL_AUDIT",
]
