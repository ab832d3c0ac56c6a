from config.settings import AcquisitionConfig, load_config, token_from_file

__all__ = ["AcquisitionConfig", "load_config", "token_from_file"]
