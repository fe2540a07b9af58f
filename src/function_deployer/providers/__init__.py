"""Cloud provider implementations of the ResourceManagementClient protocol."""
