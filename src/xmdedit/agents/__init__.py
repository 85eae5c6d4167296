"""Model-backed agents. Each agent exposes one ``run_*`` entry point returning a Result."""
