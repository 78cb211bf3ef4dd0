"""taskcontract command line interface."""
