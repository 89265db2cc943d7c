"""
DotPrint CLI Module

Command-line interface for DotPrint using Typer.

Available commands:
- init-db: Create the database tables
- features: Print the feature vector of a pattern file
- submit: Store a pattern and credit its contributor
- leaderboard: Show top contributors
- stats: Aggregate and admin statistics
- export: Write submissions and features to CSV or JSON Lines
- reset: Delete all data

Example usage:
    dotprint features pattern.json
    dotprint submit pattern.json --contributor octocat
"""

__version__ = "0.1.0"
