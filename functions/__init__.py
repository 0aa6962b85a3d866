"""SparkQuote - Cloud Functions.

This package contains the Python Cloud Functions for the SparkQuote
electrical job estimator.

Flow:
- Clarification Agent: Asks up to five multiple-choice questions
- Estimation Agent: Breaks the clarified job into priced tasks
- Time Estimate Agent: Quick hours figure for a single job type
"""

__version__ = "1.0.0"
