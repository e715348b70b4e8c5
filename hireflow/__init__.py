"""
HireFlow
Candidate matching and application lifecycle engine.

Architecture:
- MongoDB: every document (users, jobs, applications, test rounds, logs)
- Resume signal: heuristic extraction (regex + skill vocabulary)
- Fit scoring: one configurable strategy per process
"""

__version__ = "1.0.0"
