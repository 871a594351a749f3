"""
The `packaging` sub-package contains modules related to the construction and
verification of signed extension packages.

This includes:
- Archiving a source directory into the zip payload.
- Orchestrating validation, signing, assembly and the final write.
- Reading and verifying finished packages.
"""
