"""Job lifecycle controller, project container and status monitor."""
