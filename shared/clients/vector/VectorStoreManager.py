from shared.clients.ClientManager import ClientManager
from shared.clients.vector.VectorStoreInterface import VectorStoreInterface


class VectorStoreManager(ClientManager):
    """Builds the vector store selected by VECTOR_ENGINE, SQLite unless configured otherwise."""

    client_type = "vector"
    class_prefix = "VectorStore"
    default_engine = "sqlite"

    def get_client(self) -> VectorStoreInterface:
        return self.client
