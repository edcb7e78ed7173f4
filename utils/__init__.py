# Tokenization and the built-in self-check panel
