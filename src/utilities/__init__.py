"""Run tooling shared by the Hydra runner and its callbacks."""
