"""
TrailTrek core.

Trail recording, completion verification, rewards and hybrid
(local cache + ledger) synchronization for the hiking platform.

Usage:
    from trailtrek.features.recording import GPSSampler, TrailRecorder
    from trailtrek.features.completion import verify_trail_completion
    from trailtrek.features.sync import HybridSyncService
"""

__version__ = "0.1.0"
