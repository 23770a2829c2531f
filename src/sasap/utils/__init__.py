from sasap.utils.config_manager import PartitioningConfig, create_default_config, read_config_file

__all__ = ['PartitioningConfig', 'create_default_config', 'read_config_file']
