"""
BeamMark - structural beam mark labeling.

Assigns grid-based marks to primary beams and chain numbers to secondary
beams of a structural frame model, floor by floor.
"""

__version__ = "1.0.0"
