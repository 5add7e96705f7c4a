"""Result summaries and HTML reports."""
