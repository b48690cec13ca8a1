from adapter_runtime.services.client import AdapterClient
from adapter_runtime.services.executor import AdapterExecutor, BeforeLLMResult

__all__ = ["AdapterClient", "AdapterExecutor", "BeforeLLMResult"]
