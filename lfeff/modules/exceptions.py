#!/usr/bin/env python3
"""
Custom exceptions for the light-flavour efficiency analysis

Provides a hierarchy of exceptions for better error handling and diagnostics.
All custom exceptions inherit from AnalysisError for easy catching.
"""


class AnalysisError(Exception):
    """
    Base exception for all efficiency analysis errors

    All custom exceptions inherit from this class, allowing users to catch
    all analysis-specific errors with a single except clause.
    """
    pass


class ConfigurationError(AnalysisError):
    """
    Raised when configuration is invalid or missing required fields

    Examples:
    - Missing required config file
    - Invalid binning or cut values
    - Missing required config sections
    """
    pass


class MissingPIDResponseError(ConfigurationError):
    """
    Raised when an event reaches the accumulator without a PID response

    The analysis is meaningless without n-sigma information, so this
    aborts the run instead of skipping the event.
    """
    def __init__(self, message: str = None):
        super().__init__(
            message or "Missing PID response. Did you provide the n-sigma branches "
            "(or attach a PID response) for the input sample?"
        )


class MissingMCParticlesError(ConfigurationError):
    """
    Raised when MC analysis is requested on a sample without truth particles
    """
    def __init__(self, message: str = None):
        super().__init__(
            message or "MC analysis requested on a sample without the MC particle array."
        )


class DataLoadError(AnalysisError):
    """
    Raised when input files cannot be loaded

    Examples:
    - File not found
    - Corrupted ROOT file
    - Missing tree in ROOT file
    """
    pass


class BranchMissingError(AnalysisError):
    """
    Raised when required branch is not found in data

    Examples:
    - Missing track branch (e.g., trk_pt, trk_label)
    - Missing n-sigma column for a species
    - Branch name typo in configuration
    """
    def __init__(self, branch_name: str, file_path: str = None):
        """
        Initialize BranchMissingError

        Args:
            branch_name: Name of the missing branch
            file_path: Optional path to the file being read
        """
        self.branch_name = branch_name
        self.file_path = file_path

        message = f"Required branch '{branch_name}' not found"
        if file_path:
            message += f" in file: {file_path}"

        super().__init__(message)


class EfficiencyError(AnalysisError):
    """
    Raised when efficiency calculation fails

    Examples:
    - Unknown species, charge, cut or projection axis requested
    - Negative efficiency
    """
    pass


class AccumulatorStateError(AnalysisError):
    """
    Raised when the accumulator lifecycle is violated

    Examples:
    - Output histograms created twice
    - Event processed before the outputs exist
    """
    pass
