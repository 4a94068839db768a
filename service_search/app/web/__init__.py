"""Live web search: provider boundary and scoring client."""
