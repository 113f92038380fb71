"""Command-line interface for wakeful."""
