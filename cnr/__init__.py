"""Challenge Network Reconciler (CNR).

Keeps the network exposure of a hosted challenge in sync with its declarative
description:
 - an internal service exposing every declared port
 - a public load-balancer service for the non-HTTPS ports
 - an ingress for the HTTPS port
 - the challenge deployment with an injected health-check sidecar

Every reconcile pass is computed from scratch; nothing is cached between passes.
"""
