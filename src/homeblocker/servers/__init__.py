"""UDP gateway: blocks or forwards queries based on the decision engine."""
