"""Qt front end: state models, background tasks and controllers."""
