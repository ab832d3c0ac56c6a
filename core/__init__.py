"""
CORE LAYER CONTRACT

This package contains the building blocks shared by every pipeline component.

RULES:
- Data models, result values and the error taxonomy only
- No network, filesystem or XML access
- No imports from services or parsing_xml

LAYER RESPONSIBILITY:
- TenderAcquisitionError hierarchy and error categories
- Result value returned by component entry points
- Domain dataclasses (archives, records, checkpoints)
- Document-type constants of the EIS API

If you need I/O - you are in the wrong layer.
"""
