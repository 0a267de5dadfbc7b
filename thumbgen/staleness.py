"""
Staleness - Decides whether a converter's artifact is current for a source.
"""

from enum import Enum


class Staleness(Enum):
    """Result of comparing an artifact's provenance with its source."""
    STALE = 'stale'
    UP_TO_DATE = 'up_to_date'
    DESTINATION_MISSING = 'destination_missing'


def check_staleness(source_fingerprint: str, converter, output_path: str) -> Staleness:
    """
    Compare a source fingerprint with the provenance of its artifact.

    Args:
        source_fingerprint: Current content fingerprint of the source
        converter: Converter whose destination is checked
        output_path: Artifact path on the converter's output storage

    Returns:
        DESTINATION_MISSING if there is no artifact, UP_TO_DATE if the
        artifact was produced from this fingerprint, STALE otherwise.

    Raises:
        Whatever the output client raises when the provenance of an
        existing artifact cannot be read. That is an error for this
        file and converter, not a stale artifact.
    """
    if not converter.exists(output_path):
        return Staleness.DESTINATION_MISSING

    provenance = converter.read_provenance(output_path)
    if provenance.matches(source_fingerprint):
        return Staleness.UP_TO_DATE
    return Staleness.STALE
