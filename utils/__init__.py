"""Helpers shared by the HTTP and CLI adapters: input validators and output rendering."""
