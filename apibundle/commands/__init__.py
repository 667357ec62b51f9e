"""Click commands for the apibundle CLI."""
