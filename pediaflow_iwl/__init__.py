from pediaflow_iwl.constants import VERSION as __version__
