"""
DevCamper Backend: Advanced Results Pipeline
==============================================

    request query ─► translator.translate ─► QueryDescriptor
                                              │
                       pagination.paginate ◄──┤
                                              ▼
                      results.build_envelope ─► ResultEnvelope
"""
