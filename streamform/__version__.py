__title__ = "streamform"
__description__ = "Streaming multipart/form-data uploads with a precomputed Content-Length"
__version__ = "0.1.0"
