"""Services connecting the sheet core to the DB and EventBus."""
