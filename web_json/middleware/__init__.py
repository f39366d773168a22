"""Flask middleware for turning helper errors into JSON responses."""
