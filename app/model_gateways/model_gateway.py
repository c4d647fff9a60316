from abc import ABC, abstractmethod


class ModelGateway(ABC):
    @abstractmethod
    def generate(self, prompt: str) -> str:
        """Send the prompt and return the raw reply text, or raise UpstreamError"""
        pass
