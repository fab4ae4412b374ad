"""
Service layer for the QR code service.

Each service wraps an AsyncSession handed in by the caller: QR code records,
redirect resolution, scan logging and counting, identity and statistics.
"""
