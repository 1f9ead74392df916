"""
subscribers — consumers of Dropbox change batches.

Provides:
  • ``Subscriber`` abstract interface used by the sync engine
  • ``LogSubscriber`` — logs every changed entry
  • ``Propagator`` — mirrors a source file to transformed targets
"""
